"""Transport clients for the key-value store, scheduler, resource manager and coordination service."""

from .consul import ConsulClient
from .marathon import App, MarathonClient
from .mesos import ClusterState, Framework, MesosClient
from .zookeeper import ZookeeperClient

__all__ = [
    "ConsulClient",
    "App",
    "MarathonClient",
    "ClusterState",
    "Framework",
    "MesosClient",
    "ZookeeperClient",
]
