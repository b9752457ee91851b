# libdhtproto.py
# --------------
# Wire format of DHT node <-> DHT node messages and
# helpers to send them over UDP
#
# Every datagram carries exactly one fixed size message, all multi-byte
# fields in network byte order:
#
#   flags(1) | key(2) | peer.id(2) | peer.ip(4) | peer.port(2)

import socket
import struct

from peer import Peer

MALFORMED_PACKET_ERROR = 1

LOOKUP_OP    = 0
REPLY_OP     = 1
STABILIZE_OP = 2
NOTIFY_OP    = 3
JOIN_OP      = 4
N_OPCODES    = 5

OP_NAMES = {
    LOOKUP_OP: "LOOKUP",
    REPLY_OP: "REPLY",
    STABILIZE_OP: "STABILIZE",
    NOTIFY_OP: "NOTIFY",
    JOIN_OP: "JOIN",
}

# Shared by encode and decode; "!" means network order, no padding
DHT_MESSAGE_STRUCT = struct.Struct("!BHH4sH")
DHT_MESSAGE_SIZE   = DHT_MESSAGE_STRUCT.size


class DhtError(Exception):
    pass


class MalformedPacketError(DhtError, ValueError):

    def __init__(self, reason):
        super(MalformedPacketError, self).__init__(reason)
        self.code = MALFORMED_PACKET_ERROR


class DhtTransportError(DhtError):
    pass


class DhtMessage(object):
    """ A DHT message. The meaning of `key` and `peer` depends on `flags`:

    Lookup: `key` is the requested id, `peer` the lookup's originator.
    Reply: `peer` is the responsible peer, `key` the id of its predecessor.
    Stabilize: `peer` is the originator and `key` its id (redundant).
    Notify: `peer` is the originator's predecessor.
    Join: `peer` is the originator.
    """

    @staticmethod
    def parse(data):
        return decode_message(data)

    def __init__(self, flags, key, peer):
        self.flags = flags
        self.key   = key
        self.peer  = peer

    def is_known_op(self):
        return self.flags in OP_NAMES

    def op_name(self):
        return OP_NAMES.get(self.flags, "UNKNOWN(%d)" % (self.flags,))

    def encode_bytes(self):
        return encode_message(self)

    def __eq__(self, other):
        if not isinstance(other, DhtMessage):
            return NotImplemented
        return (self.flags, self.key, self.peer) == (other.flags, other.key, other.peer)

    def __hash__(self):
        return hash((self.flags, self.key, self.peer))

    def __repr__(self):
        return "DhtMessage(%s, key=%d, peer=%s)" % (self.op_name(), self.key, self.peer)


## Encode / Decode
def encode_message(msg):
    peer = msg.peer
    try:
        return DHT_MESSAGE_STRUCT.pack(msg.flags, msg.key, peer.peer_id,
                                       socket.inet_aton(peer.ip_addr), peer.port)
    except (struct.error, OSError) as err:
        # field out of range for the wire format, or not an IPv4 address
        raise MalformedPacketError("cannot encode %r: %s" % (msg, err)) from err

def decode_message(data):
    if len(data) != DHT_MESSAGE_SIZE:
        raise MalformedPacketError("expected %d bytes, got %d" % (DHT_MESSAGE_SIZE, len(data)))

    flags, key, peer_id, ip_bytes, port = DHT_MESSAGE_STRUCT.unpack(data)
    return DhtMessage(flags, key, Peer(peer_id, socket.inet_ntoa(ip_bytes), port))


## Construct Messages
def construct_lookup(dht_id, originator):
    return DhtMessage(LOOKUP_OP, dht_id, originator)

def construct_reply(predecessor_id, responsible):
    return DhtMessage(REPLY_OP, predecessor_id, responsible)

def construct_stabilize(originator):
    return DhtMessage(STABILIZE_OP, originator.peer_id, originator)

def construct_notify(predecessor):
    return DhtMessage(NOTIFY_OP, 0, predecessor)

def construct_join(originator):
    return DhtMessage(JOIN_OP, 0, originator)


## Send UDP Packets
def peer_to_sockaddr(peer):
    return (peer.ip_addr, peer.port)

def send_dht_udp_packet(sock, msg, peer):
    data = encode_message(msg)
    try:
        sock.sendto(data, peer_to_sockaddr(peer))
    except OSError as err:
        raise DhtTransportError("sendto %s failed: %s" % (peer, err)) from err
