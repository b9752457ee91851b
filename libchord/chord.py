# chord.py
# --------
# Routing engine of the DHT: decides who is responsible for an id,
# answers or forwards lookups along the successor chain and learns
# from replies

import logging
import threading

from apscheduler.schedulers.background import BackgroundScheduler

import config
import utils
from libchord.lookup_cache import LookupCache
from libchord.maintenance import RingMaintenance
from libprotocol import libdhtproto
from libprotocol.libdhtproto import DhtError

logger = logging.getLogger(__name__)

STABILISATION_JOB_ID = "dht-stabilisation"


class UnknownPeerError(DhtError):
    pass


class UnknownSuccessorError(UnknownPeerError):
    pass


class Chord(object):

    def __init__(self, peer_table, send_message, cache=None, maintenance=None,
                 clock=utils.time_ms):
        self.peers        = peer_table
        self.send_message = send_message
        self.cache        = cache if cache is not None else LookupCache()
        self.maintenance  = maintenance if maintenance is not None else RingMaintenance()
        self.clock        = clock

        self._scheduler_lock = threading.Lock()
        self.scheduler = None

    ##
    ## Responsibility
    ##
    def _local_responsible(self, dht_id):
        self_peer, predecessor, successor, _ = self.peers.snapshot()

        if predecessor is not None and \
                utils.is_responsible(predecessor.peer_id, self_peer.peer_id, dht_id):
            return self_peer
        if successor is not None and \
                utils.is_responsible(self_peer.peer_id, successor.peer_id, dht_id):
            return successor
        return None

    def responsible_peer(self, dht_id):
        """ responsible_peer(dht_id) -> Peer or None

        None means local knowledge is insufficient and a lookup is required.
        """
        peer = self._local_responsible(dht_id)
        if peer is not None:
            return peer
        return self.cache.best_match(dht_id, self.clock())

    ##
    ## Message handling
    ##
    def handle_lookup(self, msg):
        """ Reply to the originator if we or our successor own the id,
        forward the lookup unchanged to our successor otherwise.
        """
        self_peer, _, successor, _ = self.peers.snapshot()
        if successor is None:
            logger.warning("Dropping lookup for %d from %s: successor unknown",
                           msg.key, msg.peer)
            return

        if self._local_responsible(msg.key) is None:
            logger.debug("Forwarding lookup for %d to %s", msg.key, successor)
            self.send_message(msg, successor)
            return

        reply = libdhtproto.construct_reply(self_peer.peer_id, successor)
        logger.debug("Answering lookup for %d to %s with %s", msg.key, msg.peer, reply)
        self.send_message(reply, msg.peer)

    def handle_reply(self, msg):
        logger.debug("Caching %s as responsible after %d", msg.peer, msg.key)
        self.cache.record(msg.key, msg.peer, self.clock())

    def handle_stabilize(self, msg):
        self.maintenance.on_stabilize(self, msg)

    def handle_notify(self, msg):
        self.maintenance.on_notify(self, msg)

    def handle_join(self, msg):
        self.maintenance.on_join(self, msg)

    ##
    ## Outbound requests
    ##
    def initiate_lookup(self, dht_id):
        """ Send a lookup for `dht_id` to our successor. The answer shows up
        in the cache once the reply arrives; nothing here waits for it.
        """
        self_peer, _, successor, _ = self.peers.snapshot()
        if successor is None:
            raise UnknownSuccessorError("cannot look up %d without a successor" % (dht_id,))

        self.send_message(libdhtproto.construct_lookup(dht_id, self_peer), successor)

    def initiate_join(self, bootstrap=None):
        self_peer, _, _, anchor = self.peers.snapshot()
        target = bootstrap if bootstrap is not None else anchor
        if target is None:
            raise UnknownPeerError("no bootstrap peer to join through")

        logger.info("Joining DHT via %s", target)
        self.send_message(libdhtproto.construct_join(self_peer), target)

    ##
    ## Stabilisation
    ##
    def stabilize(self):
        self.maintenance.stabilize(self)

    def start_stabilisation(self, interval=config.STABILISATION_INTERVAL):
        with self._scheduler_lock:
            if self.scheduler is not None:
                return
            self.scheduler = BackgroundScheduler()
            self.scheduler.add_job(self.stabilize, 'interval', seconds=interval,
                                   id=STABILISATION_JOB_ID)
            self.scheduler.start()

    def stop_stabilisation(self):
        with self._scheduler_lock:
            if self.scheduler is None:
                return
            self.scheduler.shutdown(wait=False)
            self.scheduler = None

    def is_stabilising(self):
        return self.scheduler is not None
