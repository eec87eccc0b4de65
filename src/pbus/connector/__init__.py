"""
A connector describes an endpoint, such as a serial port or a TCP server, and opens a conduit to it.
"""
