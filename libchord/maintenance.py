# maintenance.py
# --------------
# Extension point for the ring maintenance protocol. The lookup core
# calls into it for Stabilize, Notify and Join messages and for the
# periodic stabilisation round; it prescribes no algorithm itself

import logging

logger = logging.getLogger(__name__)


class RingMaintenance(object):
    """ Default maintenance: every hook is a no-op that leaves the
    peer table and the lookup cache untouched. Subclass to implement
    stabilisation, notification and join handling.
    """

    def on_stabilize(self, chord, msg):
        logger.debug("Ignoring STABILIZE from %s", msg.peer)

    def on_notify(self, chord, msg):
        logger.debug("Ignoring NOTIFY naming %s", msg.peer)

    def on_join(self, chord, msg):
        logger.debug("Ignoring JOIN from %s", msg.peer)

    def stabilize(self, chord):
        pass
