"""


Bus Connections

- Frame: [STX, address, length, data..., checksum, ETX] with up to 8 data bytes. The checksum
  makes the byte sum from STX to the last data byte zero, modulo 256.
- FrameReader: resynchronizing state machine over a byte stream. Noise before a frame is skipped;
  a frame with a bad checksum or end byte is discarded along with the bytes already waiting.
- Conduit: abstraction of a bi-directional channel. Combines 2 streams for reading and writing.
- Connector: connects a conduit to an endpoint
 - local serial ports (SerialConnector)
 - network bridges (SocketConnector)

- ListenerRegistry - one consumer per module address plus a fallback consumer for frames from
  addresses nobody registered. Discovery listens on the fallback.
- FrameSender - single writer for outgoing frames. Keeps at least 60 ms between the start of
  consecutive writes, which the bus modules need to keep up.
- ConnectionSupervisor - connects, runs the read loop and reconnects periodically after a transport
  failure. Configuration errors (unknown serial port) are not retried.


## Threading

Each supervisor runs
- one read thread per connection, which is also the thread consumers are called on
- one sender thread
- a reconnection thread while disconnected after a failure

Reads block; a read loop is ended by closing its conduit, which makes the read return.
Consumers should return quickly, since the next frame is not read until they do.

Refresh jobs run on their own threads and only queue frames with the sender.

"""
