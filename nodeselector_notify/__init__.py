"""nodeselector-notify: reports Deployments that lack a nodeSelector."""

__version__ = "0.1.0"
