# utils.py
# --------
# Identifier space of the DHT ring: hashing keys onto the ring,
# wraparound distance and the responsibility predicate

import hashlib
import time

import config

ID_BITS  = config.ID_BITS
ID_SPACE = 1 << ID_BITS
ID_MASK  = ID_SPACE - 1

##
## Hashing
##
def dht_hash(key):
    """ dht_hash(key) -> dht_id

    SHA-256 of the key, truncated to the leading ID_BITS bits read in
    network (big endian) order. Strings are hashed as UTF-8.
    """
    if isinstance(key, str):
        key = key.encode("utf-8")

    digest = hashlib.sha256(key).digest()
    n_bytes = (ID_BITS + 7) // 8
    value = int.from_bytes(digest[:n_bytes], "big")
    return value >> (n_bytes * 8 - ID_BITS)

##
## Ring arithmetic
##
def ring_distance(from_id, to_id):
    # clockwise steps from `from_id` to `to_id`, never negative
    return (to_id - from_id) & ID_MASK

def is_responsible(peer_predecessor, peer, dht_id):
    """ Check whether `peer` owns `dht_id`, i.e. whether the ring arc
    (peer_predecessor, peer] contains it.

    A peer that is its own predecessor is alone on the ring and owns
    everything. Note that False does not imply that the predecessor is
    responsible for the id.
    """
    if peer_predecessor == peer:
        return True
    return ring_distance(dht_id, peer) < ring_distance(dht_id, peer_predecessor)

##
## Time
##
def time_ms():
    return int(round(time.time() * 1000))
