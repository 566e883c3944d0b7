"""Prometheus scrape configuration and dashboard queries for a chain."""

import os
from typing import Dict, List, Sequence, Union
from urllib.parse import quote_plus, urlsplit

import yaml

from .ids import ID_LEN, id_to_string

SCRAPE_INTERVAL = "15s"
EVALUATION_INTERVAL = "15s"
JOB_NAME = "prometheus"
METRICS_PATH = "/ext/metrics"
DASHBOARD_BASE = "http://localhost:9090/graph"
FILE_MODE = 0o600

PANEL_LABELS = (
    "blocks processing",
    "blocks accepted per second",
    "blocks rejected per second",
    "transactions per second",
    "state operations per second",
    "state changes per second",
    "root calcuation wait (ms/s)",
    "signature verification wait (ms/s)",
    "mempool size",
    "CPU usage",
    "consensus engine processing (ms/s)",
)

_HANDLER_METRICS = (
    "chits",
    "notify",
    "get",
    "push_query",
    "put",
    "pull_query",
    "query_failed",
)


def _chain_text(chain_id: Union[bytes, str]) -> str:
    if isinstance(chain_id, str):
        return chain_id
    raw = bytes(chain_id)
    if len(raw) != ID_LEN:
        raise ValueError(f"chain id must be {ID_LEN} bytes, got {len(raw)}")
    return id_to_string(raw)


def endpoint_from_uri(uri: str) -> str:
    """Return the host:port that Prometheus should scrape for *uri*."""
    parts = urlsplit(uri)
    host = parts.hostname
    if not host:
        raise ValueError(f"no host in uri {uri!r}")
    port = parts.port
    if port is None:
        raise ValueError(f"no port in uri {uri!r}")
    return f"{host}:{port}"


def prometheus_config(endpoints: Sequence[str]) -> Dict:
    """Build the scrape configuration for *endpoints*."""
    return {
        "global": {
            "scrape_interval": SCRAPE_INTERVAL,
            "evaluation_interval": EVALUATION_INTERVAL,
        },
        "scrape_configs": [
            {
                "job_name": JOB_NAME,
                "static_configs": [{"targets": list(endpoints)}],
                "metrics_path": METRICS_PATH,
            }
        ],
    }


def dashboard_panels(chain_id: Union[bytes, str]) -> List[str]:
    """Return the dashboard queries for a chain, in the order of PANEL_LABELS."""
    cid = _chain_text(chain_id)
    vm = f"avalanche_{cid}_vm_hyper_sdk"
    consensus = " + ".join(
        f"increase(avalanche_{cid}_handler_{name}_sum[30s])/1000000/30"
        for name in _HANDLER_METRICS
    )
    return [
        f"avalanche_{cid}_blks_processing",
        f"increase(avalanche_{cid}_blks_accepted_count[30s])/30",
        f"increase(avalanche_{cid}_blks_rejected_count[30s])/30",
        f"increase({vm}_vm_txs_accepted[30s])/30",
        f"increase({vm}_chain_state_operations[30s])/30",
        f"increase({vm}_chain_state_changes[30s])/30",
        f"increase({vm}_chain_root_calculated_sum[30s])/1000000/30",
        f"increase({vm}_chain_wait_signatures_sum[30s])/1000000/30",
        f"{vm}_chain_mempool_size",
        "avalanche_resource_tracker_cpu_usage",
        consensus,
    ]


def dashboard_url(panels: Sequence[str]) -> str:
    """Link to a dashboard showing *panels*, numbered in the given order."""
    url = DASHBOARD_BASE
    for index, panel in enumerate(panels):
        joiner = "?" if index == 0 else "&"
        url = f"{url}{joiner}g{index}.expr={quote_plus(panel)}&g{index}.tab=0"
    return url


def write_prometheus_config(path: str, endpoints: Sequence[str]) -> None:
    """Write the scrape configuration for *endpoints* as YAML to *path*."""
    text = yaml.safe_dump(prometheus_config(endpoints), sort_keys=False)
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
        handle.write(text)