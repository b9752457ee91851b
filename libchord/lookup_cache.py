# lookup_cache.py
# ---------------
# Fixed size table of the most recent lookup replies. Each entry records
# that `peer` owns the ring arc (predecessor, peer] as of `timestamp`

import threading

import config
import utils


class CacheEntry(object):
    __slots__ = ("timestamp", "predecessor", "peer")

    def __init__(self, timestamp=0, predecessor=0, peer=None):
        self.timestamp   = timestamp
        self.predecessor = predecessor
        self.peer        = peer

    def is_empty(self):
        return self.peer is None

    def copy(self):
        return CacheEntry(self.timestamp, self.predecessor, self.peer)

    def __repr__(self):
        return "CacheEntry(timestamp=%d, predecessor=%d, peer=%s)" % \
               (self.timestamp, self.predecessor, self.peer)


class LookupCache(object):

    def __init__(self, capacity=config.LOOKUP_CACHE_ENTRIES,
                 validity_ms=config.LOOKUP_CACHE_VALIDITY_MS):
        self.capacity    = capacity
        self.validity_ms = validity_ms
        self._lock  = threading.Lock()
        self._slots = [CacheEntry() for _ in range(capacity)]

    def is_outdated(self, timestamp, now):
        return (now - timestamp) >= self.validity_ms

    def record(self, reply_key, peer, now):
        """ Enter the reply "`peer` is responsible, its predecessor is
        `reply_key`" into the table.

        The slot already holding `peer` is updated in place. Otherwise the
        least recently updated slot is overwritten; unused slots have a zero
        timestamp and so are taken first.
        """
        with self._lock:
            for entry in self._slots:
                if entry.peer == peer:
                    if entry.timestamp < now:
                        entry.timestamp = now
                    entry.predecessor = reply_key
                    return

            victim = min(self._slots, key=lambda e: e.timestamp)
            victim.timestamp   = now
            victim.predecessor = reply_key
            victim.peer        = peer

    def best_match(self, dht_id, now):
        """ best_match(dht_id, now) -> Peer or None

        First fresh entry, in slot order, whose arc contains `dht_id`.
        """
        with self._lock:
            for entry in self._slots:
                if entry.is_empty() or self.is_outdated(entry.timestamp, now):
                    continue
                if utils.is_responsible(entry.predecessor, entry.peer.peer_id, dht_id):
                    return entry.peer
        return None

    def entries(self):
        with self._lock:
            return [e.copy() for e in self._slots if not e.is_empty()]

    def clear(self):
        with self._lock:
            self._slots = [CacheEntry() for _ in range(self.capacity)]

    def __len__(self):
        with self._lock:
            return sum(1 for e in self._slots if not e.is_empty())
