"""Paginated result streaming for client libraries."""

__version__ = "1.0.0"

from paginator.adapter import extend, paginated, streamified, streamify
from paginator.arguments import Arguments, parse_arguments
from paginator.runner import collect, run, run_as_stream, run_manually
from paginator.stream import ResourceStream
