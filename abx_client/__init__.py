"""Top-level package for the ABX exchange market-data client.

Subpackages follow the data path of a run: :mod:`abx_client.protocol` speaks
the wire format, :mod:`abx_client.session` drives ingestion, gap recovery and
finalization, :mod:`abx_client.telemetry` reports and exports the result.
"""

__version__ = "0.1.0"

__all__: list[str] = ["__version__"]
