"""
ArangoDB SDK Protocol Module.

Request/response envelopes and the drivers that run protocol flows.
"""

from .envelope import (
    ArangoJSONEncoder,
    RequestEnvelope,
    ResponseEnvelope,
    dumps,
    parse_envelope,
)
from .flow import Flow, run_async, run_sync

__all__ = [
    "ArangoJSONEncoder",
    "Flow",
    "RequestEnvelope",
    "ResponseEnvelope",
    "dumps",
    "parse_envelope",
    "run_async",
    "run_sync",
]
