"""
The conduit package provides an abstraction of a bi-directional byte stream to a bus interface.
Concrete implementations are a local serial port and a TCP socket.
"""
