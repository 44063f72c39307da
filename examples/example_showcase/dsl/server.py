from enum import Enum
from typing import Dict, List, Optional

from toml_example.core.schema.decorator import schema
from toml_example.core.schema.fields import field


class Level(Enum):
    Debug = "debug"
    Info = "info"
    Important = "important"


def default_workers() -> int:
    return 4


@schema
class Service:
    """Service with specific port"""

    port = field(int, doc="port should be a number")
    host = field(Optional[str], doc="host to bind, all interfaces when unset")


@schema
class Limits:
    max_connections = field(int, doc="Upper bound of open connections", default=1024)
    timeout_secs = field(float, doc="Request timeout in seconds", zero_default=True)


@schema(rename_all="kebab-case")
class Node:
    """Node configuration
    Generated from the schema; edit the values below.
    """

    node_name = field(str, doc="Name shown in the dashboard", default="node-1")
    workers = field(int, doc="Number of worker threads", default_factory=default_workers)
    log_level = field(Level, doc="Log verbosity", default=Level.Info)
    tags = field(List[str], doc="Free-form tags")
    token = field(Optional[str], doc="API token")
    internal_id = field(int, skip=True)
    limits = field(Limits, doc="Connection limits", nesting=True)
    services = field(
        Dict[str, Service], doc="Services are running in the node", nesting="http"
    )
