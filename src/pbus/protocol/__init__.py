"""
The Pbus wire protocol: frame building and checksums, the command byte table and the
byte-stream reader that recovers frames from a continuous stream.
"""
