# peer.py
# -------
# Peer descriptions and the table of distinguished peers a node knows:
# itself, its predecessor, its successor and its anchor

import threading
from collections import namedtuple


class Peer(namedtuple("Peer", ["peer_id", "ip_addr", "port"])):
    """ A peer of the DHT: its ring id plus the IPv4 address and UDP port
    it is reachable by. Compared by value.
    """
    __slots__ = ()

    def __str__(self):
        return "%d@%s:%d" % (self.peer_id, self.ip_addr, self.port)


class PeerTable(object):
    """ The node context. `predecessor` and `successor` are None while
    unknown, e.g. before the node has joined a ring.
    """

    def __init__(self, self_peer, anchor=None):
        self._lock = threading.RLock()
        self.self_peer   = self_peer
        self.predecessor = None
        self.successor   = None
        self.anchor      = anchor

    def set_predecessor(self, peer):
        with self._lock:
            self.predecessor = peer

    def set_successor(self, peer):
        with self._lock:
            self.successor = peer

    def set_anchor(self, peer):
        with self._lock:
            self.anchor = peer

    def snapshot(self):
        """ snapshot() -> (self_peer, predecessor, successor, anchor)
        """
        with self._lock:
            return self.self_peer, self.predecessor, self.successor, self.anchor

    def describe(self):
        self_peer, predecessor, successor, anchor = self.snapshot()
        lines = ["Peer Information:",
                 "Peer: %s" % (self_peer,),
                 "Predecessor: %s" % (_describe_peer(predecessor),),
                 "Successor: %s" % (_describe_peer(successor),),
                 "Anchor: %s" % (_describe_peer(anchor),)]
        return "\n".join(lines)


def _describe_peer(peer):
    return "unknown" if peer is None else str(peer)
