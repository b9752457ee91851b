import collections
import socket
import threading
import time

from peer import Peer
from dhtserver import DhtServer


class ManualClock(object):

    def __init__(self, now=10000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class RecordingSocket(object):
    """ Stands in for a UDP socket; keeps every datagram sent through it.
    """

    def __init__(self):
        self.sent = []

    def sendto(self, data, address):
        self.sent.append((data, address))

    def settimeout(self, timeout):
        self.timeout = timeout

    def close(self):
        pass


class FailingSocket(RecordingSocket):

    def sendto(self, data, address):
        raise OSError(101, "Network is unreachable")


class ScriptedSocket(RecordingSocket):
    """ Answers recvfrom() from a script of datagrams and exceptions, then
    times out like an idle socket.
    """

    def __init__(self, script):
        super(ScriptedSocket, self).__init__()
        self.script = collections.deque(script)
        self.drained = threading.Event()

    def recvfrom(self, size):
        if not self.script:
            self.drained.set()
            time.sleep(0.01)
            raise socket.timeout("timed out")
        step = self.script.popleft()
        if isinstance(step, Exception):
            raise step
        return step


class LoopbackSocket(RecordingSocket):

    def __init__(self, network, address):
        super(LoopbackSocket, self).__init__()
        self.network = network
        self.address = address

    def sendto(self, data, address):
        super(LoopbackSocket, self).sendto(data, address)
        self.network.queue.append((data, address, self.address))


class LoopbackNetwork(object):
    """ Delivers datagrams between in-process DhtServers by address.
    """

    def __init__(self, clock):
        self.clock = clock
        self.servers = {}
        self.queue = collections.deque()
        self.delivered = []

    def add_node(self, self_peer, **kwargs):
        address = (self_peer.ip_addr, self_peer.port)
        server = DhtServer(self_peer, sock=LoopbackSocket(self, address),
                           clock=self.clock, **kwargs)
        self.servers[address] = server
        return server

    def pump(self, limit=100):
        while self.queue and limit > 0:
            data, dest, source = self.queue.popleft()
            self.delivered.append((data, dest, source))
            server = self.servers.get(dest)
            if server is not None:
                server.on_datagram(data, source)
            limit -= 1


def make_peer(peer_id, port=None):
    return Peer(peer_id, "10.0.0.%d" % (peer_id % 250 + 1,), port or 4000 + peer_id % 60000)


def get_free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
