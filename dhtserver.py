# dhtserver.py
# ------------
# The DHT node server component
# Owns the UDP socket, decodes inbound datagrams and dispatches
# them to the routing engine; exposes the lookup API to collaborators
import logging
import socket

import config
import utils
from peer import PeerTable
from libchord.chord import Chord
from libprotocol import libdhtproto
from libprotocol.libdhtproto import DhtTransportError, MalformedPacketError

logger = logging.getLogger(__name__)


class DhtServer(object):

    hash = staticmethod(utils.dht_hash)

    def __init__(self, self_peer, anchor=None, maintenance=None, sock=None,
                 clock=utils.time_ms):
        self.peers = PeerTable(self_peer, anchor)
        self.chord = Chord(self.peers, self._send_message, maintenance=maintenance, clock=clock)
        self.dht_socket = sock
        self._running = False

    @property
    def self_peer(self):
        return self.peers.self_peer

    @property
    def cache(self):
        return self.chord.cache

    ##
    ## Socket
    ##
    def bind(self):
        if self.dht_socket is not None:
            return self.dht_socket

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(libdhtproto.peer_to_sockaddr(self.self_peer))
        except OSError as err:
            sock.close()
            raise DhtTransportError("bind %s failed: %s" % (self.self_peer, err)) from err

        self.dht_socket = sock
        logger.info("DHT node %s listening", self.self_peer)
        return sock

    def handle_socket(self):
        """ Receive and process a single DHT message.
        """
        sock = self.dht_socket
        if sock is None:
            raise DhtTransportError("DHT socket is not bound")
        try:
            data, address = sock.recvfrom(config.MAX_PACKET_SIZE)
        except socket.timeout:
            raise
        except OSError as err:
            raise DhtTransportError("recvfrom failed: %s" % (err,)) from err
        return self.on_datagram(data, address)

    def run(self):
        """ Serve datagrams until close(). Receive errors are logged and
        the loop carries on.
        """
        self.bind().settimeout(config.RECV_TIMEOUT)
        self._running = True
        while self._running:
            try:
                self.handle_socket()
            except socket.timeout:
                continue
            except DhtTransportError as err:
                if not self._running or self.dht_socket is None:
                    break
                logger.error("%s", err)

    def close(self):
        self._running = False
        self.chord.stop_stabilisation()
        if self.dht_socket is not None:
            self.dht_socket.close()
            self.dht_socket = None

    def _send_message(self, msg, peer):
        sock = self.dht_socket
        if sock is None:
            raise DhtTransportError("DHT socket is not bound")
        libdhtproto.send_dht_udp_packet(sock, msg, peer)

    ##
    ## Dispatch
    ##
    def on_datagram(self, data, address=None):
        """ Feed one inbound datagram. Returns the decoded message, or None
        when the datagram was dropped.
        """
        try:
            msg = libdhtproto.decode_message(data)
        except MalformedPacketError as err:
            logger.warning("Dropping malformed DHT datagram from %s: %s", address, err)
            return None

        if not msg.is_known_op():
            logger.warning("Received invalid DHT message from %s: %s", address, msg)
            return None

        self._process_dht_message(msg)
        return msg

    def _process_dht_message(self, msg):
        if msg.flags == libdhtproto.LOOKUP_OP:
            self.chord.handle_lookup(msg)
        elif msg.flags == libdhtproto.REPLY_OP:
            self.chord.handle_reply(msg)
        elif msg.flags == libdhtproto.STABILIZE_OP:
            self.chord.handle_stabilize(msg)
        elif msg.flags == libdhtproto.NOTIFY_OP:
            self.chord.handle_notify(msg)
        elif msg.flags == libdhtproto.JOIN_OP:
            self.chord.handle_join(msg)

    def encode_outbound(self, msg):
        return libdhtproto.encode_message(msg)

    ##
    ## Collaborator API
    ##
    def resolve(self, dht_id):
        return self.chord.responsible_peer(dht_id)

    def resolve_key(self, key):
        return self.resolve(utils.dht_hash(key))

    def begin_lookup(self, dht_id):
        self.chord.initiate_lookup(dht_id)

    def begin_join(self, bootstrap=None):
        self.chord.initiate_join(bootstrap)

    def start_stabilisation(self, interval=config.STABILISATION_INTERVAL):
        self.chord.start_stabilisation(interval)
