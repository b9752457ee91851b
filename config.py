# config.py
# ---------
# Constants shared by the DHT node components

# IDENTIFIER SPACE
ID_BITS = 16                        # width of dht_id on the wire

# LOOKUP CACHE
LOOKUP_CACHE_ENTRIES     = 30
LOOKUP_CACHE_VALIDITY_MS = 2000

# RING MAINTENANCE
STABILISATION_INTERVAL = 1          # seconds between stabilize() rounds

# TRANSPORT
MAX_PACKET_SIZE = 1024              # recv buffer, larger than any DHT message
RECV_TIMEOUT    = 0.5               # seconds run() waits before re-checking for close()
