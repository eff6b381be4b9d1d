"""Upload service addresses: DNS resolution, shuffling and retry backoff."""

import logging
import math
import random
import socket
from typing import Callable, List, Optional, Sequence

log = logging.getLogger(__name__)

UPLOAD_HOST = "api.replay.io"
UPLOAD_ENDPOINT = "/v1/sourcemap-upload"
UPLOAD_PORT = 443

# Rounds over the full address set before the single fallback attempt.
UPLOAD_ROUNDS = 5
BASE_RETRY_WINDOW_MS = 100

# hostname -> addresses
Resolver = Callable[[str], List[str]]


def resolve_addresses(hostname: str) -> List[str]:
    """All IPv4/IPv6 addresses for hostname, in resolver order, without duplicates."""
    infos = socket.getaddrinfo(hostname, UPLOAD_PORT, type=socket.SOCK_STREAM)
    out: List[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = str(sockaddr[0])
        if address not in out:
            out.append(address)
    log.debug("Resolved %s to %s", hostname, out)
    return out


def shuffled(addresses: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """Uniformly shuffled copy of addresses, to spread load across them."""
    out = list(addresses)
    (rng or random).shuffle(out)
    return out


def retry_sleep_time(attempt: int, rng: Optional[random.Random] = None) -> float:
    """
    Seconds to wait after a failed attempt in round ``attempt`` (zero-based).

    The jitter is exponentially distributed, so the load from many clients
    retrying in the same round is Poisson. The window grows quadratically with
    the round, which stays fair under contention where linear, constant and
    plain exponential backoff do not.
    """
    jitter = -math.log(1.0 - (rng or random).random())
    return jitter * BASE_RETRY_WINDOW_MS * (attempt + 1) ** 2 / 1000.0


def address_url(address: str, endpoint: str = UPLOAD_ENDPOINT) -> str:
    """https URL that connects to a literal address (IPv6 in brackets)."""
    host = f"[{address}]" if ":" in address else address
    return f"https://{host}{endpoint}"
