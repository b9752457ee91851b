# dhtmain.py
# ----------
# The DHT node main program. Binds the node's UDP socket, optionally
# joins via an anchor peer and serves DHT messages until interrupted

import argparse
import logging
import socket
import sys

import utils
from peer import Peer
from dhtserver import DhtServer
from libprotocol.libdhtproto import DhtError

logger = logging.getLogger("dhtmain")


def parse_dht_id(value):
    try:
        dht_id = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("expected an integer id, got %r" % (value,))
    if not 0 <= dht_id < utils.ID_SPACE:
        raise argparse.ArgumentTypeError("id %d outside 0..%d" % (dht_id, utils.ID_SPACE - 1))
    return dht_id


def parse_port(value):
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("expected an integer port, got %r" % (value,))
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError("port %d outside 0..65535" % (port,))
    return port


def parse_ip_addr(value):
    try:
        socket.inet_aton(value)
    except OSError:
        raise argparse.ArgumentTypeError("expected an IPv4 address, got %r" % (value,))
    return value


def parse_peer(value):
    """ parse_peer("ip:port:id") -> Peer
    """
    parts = value.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError("expected ip:port:id, got %r" % (value,))
    ip_addr, port, peer_id = parts
    return Peer(parse_dht_id(peer_id), parse_ip_addr(ip_addr), parse_port(port))


def build_parser():
    parser = argparse.ArgumentParser(description="DHT lookup node")
    parser.add_argument("ip_addr", type=parse_ip_addr)
    parser.add_argument("port", type=parse_port)
    parser.add_argument("peer_id", type=parse_dht_id)
    parser.add_argument("--anchor", type=parse_peer, help="bootstrap peer ip:port:id to join through")
    parser.add_argument("--predecessor", type=parse_peer, help="initial predecessor ip:port:id")
    parser.add_argument("--successor", type=parse_peer, help="initial successor ip:port:id")
    parser.add_argument("--stabilise", action="store_true", help="run periodic stabilisation")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    server = DhtServer(Peer(args.peer_id, args.ip_addr, args.port), anchor=args.anchor)
    if args.predecessor:
        server.peers.set_predecessor(args.predecessor)
    if args.successor:
        server.peers.set_successor(args.successor)

    try:
        server.bind()
        logger.info("\n%s", server.peers.describe())
        if args.anchor:
            server.begin_join()
        if args.stabilise:
            server.start_stabilisation()
        server.run()
    except KeyboardInterrupt:
        logger.info("Shutting down node...")
    except DhtError as err:
        logger.error("%s", err)
        return 1
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
