"""Server capacity precheck.

Writing and reading back a multi-megabyte BLOB fails on servers configured
with small packet or redo log limits. Those are environment preconditions,
so the gate turns them into a skip with the setting and value to change.
"""

import re
from dataclasses import dataclass
from logging import getLogger

logger = getLogger(__name__)


PACKET_OVERHEAD = 4
PACKET_PAYLOAD_FACTOR = 2

# MySQL 5.6.20 limits redo log BLOB writes to 10% of innodb_log_file_size,
# 5.7.5 lifts the limit (Bug #16963396, Bug #19030353, Bug #69477).
REDO_LOG_LIMIT_VERSIONS = ((5, 6, 20), (5, 7, 0))
REDO_LOG_FACTOR = 10


@dataclass(frozen=True)
class CapacityLimits:
    max_allowed_packet: int
    innodb_log_file_size: int = None
    server_version: tuple = None


@dataclass(frozen=True)
class GateDecision:
    proceed: bool
    reason: str = ""

    @classmethod
    def skip(cls, reason):
        return cls(proceed=False, reason=reason)

    def __bool__(self):
        return self.proceed


PROCEED = GateDecision(proceed=True)


def parse_server_version(version) -> tuple:
    """Parse '5.6.21-log' or '10.11.6-MariaDB-1:10.11.6' into (5, 6, 21) / (10, 11, 6)"""
    if version is None:
        return None
    if isinstance(version, (tuple, list)):
        return tuple(int(x) for x in version)
    match = re.match(r"\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?", str(version))
    if not match:
        raise ValueError(f"cannot parse server version {version!r}")
    return tuple(int(x or 0) for x in match.groups())


def required_packet_size(artifact_length: int) -> int:
    return PACKET_OVERHEAD + PACKET_PAYLOAD_FACTOR * artifact_length


def required_log_file_size(artifact_length: int) -> int:
    return REDO_LOG_FACTOR * artifact_length


def is_redo_log_limited(server_version) -> bool:
    if server_version is None:
        return False
    lower, upper = REDO_LOG_LIMIT_VERSIONS
    return lower <= tuple(server_version) < upper


def authorize(limits: CapacityLimits, artifact_length: int, server_version=None) -> GateDecision:
    server_version = parse_server_version(
        server_version if server_version is not None else limits.server_version
    )

    required = required_packet_size(artifact_length)
    if limits.max_allowed_packet is None or limits.max_allowed_packet < required:
        reason = f"You need to increase max_allowed_packet to at least {required} before running this test!"
        logger.warning(reason)
        return GateDecision.skip(reason)

    if is_redo_log_limited(server_version):
        required = required_log_file_size(artifact_length)
        if limits.innodb_log_file_size is None or limits.innodb_log_file_size < required:
            reason = f"You need to increase innodb_log_file_size to at least {required} before running this test!"
            logger.warning(reason)
            return GateDecision.skip(reason)

    return PROCEED


def _as_int(value):
    if value is None:
        return None
    return int(value)


def read_capacity_limits(api) -> CapacityLimits:
    """Snapshot the server variables the gate depends on"""
    limits = CapacityLimits(
        max_allowed_packet=_as_int(api.get_variable("max_allowed_packet")),
        innodb_log_file_size=_as_int(api.get_variable("innodb_log_file_size")),
        server_version=parse_server_version(api.get_server_version()),
    )
    logger.debug(f"Server capacity limits: {limits}")
    return limits
