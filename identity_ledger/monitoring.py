# identity_ledger/monitoring.py
import socket
import threading
import logging
from socketserver import ThreadingMixIn
from wsgiref.simple_server import make_server, WSGIServer

import psutil
from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
from prometheus_client.exposition import make_wsgi_app

from identity_ledger.config import MonitoringConfig

logger = logging.getLogger(__name__)


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """A WSGI server that runs in a separate thread to not block the ledger."""
    allow_reuse_address = True
    daemon_threads = True


class Monitor:
    def __init__(self, chain, config: MonitoringConfig = None):
        self.chain = chain
        self.config = config or MonitoringConfig()
        self.server = None
        self.thread = None

        # Isolated registry so several ledgers can live in one process
        self.registry = CollectorRegistry()

        self.tx_counter = Counter('ledger_transactions_total', 'Transactions processed', ['tx_type', 'status'], registry=self.registry)
        self.tx_latency = Histogram('ledger_tx_latency_seconds', 'Time to apply one transaction', registry=self.registry)
        self.block_latency = Histogram('ledger_block_latency_seconds', 'Time to apply one block', registry=self.registry)
        self.block_number = Gauge('ledger_block_number', 'Number of the latest block', registry=self.registry)
        self.clock_height = Gauge('ledger_clock_height', 'Simulated block height', registry=self.registry)
        self.identities = Gauge('ledger_identities', 'Registered identities', registry=self.registry)
        self.validators = Gauge('ledger_validators', 'Registered validators', registry=self.registry)
        self.blacklisted = Gauge('ledger_blacklisted_addresses', 'Blacklisted addresses', registry=self.registry)
        self.pending_recoveries = Gauge('ledger_pending_recoveries', 'Recovery requests awaiting completion', registry=self.registry)
        self.recoveries_completed = Counter('ledger_recoveries_completed_total', 'Recoveries completed', registry=self.registry)
        self.cpu_usage = Gauge('system_cpu_percent', 'Current CPU usage percent', registry=self.registry)
        self.memory_usage = Gauge('system_memory_percent', 'Current memory usage percent', registry=self.registry)

        if self.config.enabled:
            self.start_server()

    def start_server(self):
        """Starts the Prometheus HTTP endpoint in a daemon thread."""
        app = make_wsgi_app(self.registry)
        self.server = make_server(self.config.host, self.config.port, app, ThreadingWSGIServer)
        self.server.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        self.thread = threading.Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        logger.info(f"Prometheus server started on http://{self.config.host}:{self.config.port}")

    def stop_server(self):
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            logger.info("Prometheus server stopped.")

    def update(self):
        summary = self.chain.state.summary()
        self.block_number.set(self.chain.latest_block.number)
        self.clock_height.set(summary['height'])
        self.identities.set(len(self.chain.identities))
        self.validators.set(len(self.chain.validators))
        self.blacklisted.set(summary['blacklisted'])
        self.pending_recoveries.set(summary['pending_recoveries'])

        self.cpu_usage.set(psutil.cpu_percent())
        self.memory_usage.set(psutil.virtual_memory().percent)

    def record_tx(self, tx_type: str, status: str, latency: float):
        self.tx_counter.labels(tx_type=tx_type, status=status).inc()
        self.tx_latency.observe(latency)

    def record_block(self, latency: float):
        self.block_latency.observe(latency)

    def record_recovery(self):
        self.recoveries_completed.inc()
