"""
Transaction receipt waiters.

Both waiters subscribe to new blocks through a ``latest`` block filter and
look the receipt up once per block until it shows up. There is no timeout:
if the transaction is never mined the callback never fires.
"""

import logging
import threading
from typing import Any, Callable, Optional

from web3 import Web3
from web3.exceptions import TransactionNotFound
from web3.method import Method, default_root_munger
from web3.module import Module

from .settings import HelperSettings

logger = logging.getLogger(__name__)

# Error-first callback: (error, receipt)
ReceiptCallback = Callable[[Optional[Exception], Optional[Any]], None]


class SandboxModule(Module):
    """``w3.sandbox`` namespace of the sandbox node's JSON-RPC API."""

    receipt: Method[Callable[[Any], Any]] = Method(
        "sandbox_receipt",
        mungers=[default_root_munger],
    )


def attach_sandbox(w3: Web3) -> Web3:
    """Attach the ``sandbox`` module to ``w3`` if it is not there yet."""
    if not hasattr(w3, "sandbox"):
        w3.attach_modules({"sandbox": SandboxModule})
    return w3


class BlockWatcher:
    """Polls a ``latest`` block filter and reports every new block.

    ``watch`` starts a daemon thread calling ``callback(error, block_hash)``
    once per new block; ``stop_watching`` ends it and uninstalls the filter.
    """

    def __init__(self, w3: Web3, poll_interval: float = HelperSettings.poll_interval) -> None:
        self.w3 = w3
        self.poll_interval = poll_interval
        self._filter = None
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def watching(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def watch(self, callback: Callable[[Optional[Exception], Any], None]) -> None:
        self._filter = self.w3.eth.filter("latest")
        self._thread = threading.Thread(
            target=self._run, args=(callback,), name="block-watcher", daemon=True
        )
        self._thread.start()

    def stop_watching(self) -> None:
        if self._stopped.is_set():
            return
        self._stopped.set()
        try:
            self.w3.eth.uninstall_filter(self._filter.filter_id)
        except Exception as e:
            logger.debug(f"Could not uninstall block filter: {e}")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, callback) -> None:
        while not self._stopped.is_set():
            try:
                entries = self._filter.get_new_entries()
            except Exception as e:
                if self._stopped.is_set():
                    return
                logger.warning(f"Block filter poll failed: {e}")
                callback(e, None)
                entries = []

            for block_hash in entries:
                if self._stopped.is_set():
                    return
                callback(None, block_hash)

            self._stopped.wait(self.poll_interval)


class _OneShot:
    """Completion token allowing a single successful claim."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fired = False

    def claim(self) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            return True


def _wait_for(
    w3: Web3,
    tx_hash,
    lookup: Callable[[Any], Any],
    callback: ReceiptCallback,
    poll_interval: float,
) -> BlockWatcher:
    watcher = BlockWatcher(w3, poll_interval)
    done = _OneShot()

    def on_block(err, _block_hash):
        # A failed filter poll still counts as a tick; only lookup errors
        # reach the callback, every time, without stopping the watcher.
        if err is not None:
            logger.debug(f"Checking receipt for {tx_hash} after filter error: {err}")
        try:
            receipt = lookup(tx_hash)
        except TransactionNotFound:
            receipt = None
        except Exception as e:
            callback(e, None)
            return

        if receipt and done.claim():
            watcher.stop_watching()
            callback(None, receipt)

    watcher.watch(on_block)
    return watcher


def wait_for_receipt(
    w3: Web3,
    tx_hash,
    callback: ReceiptCallback,
    poll_interval: float = HelperSettings.poll_interval,
) -> BlockWatcher:
    """Call ``callback(None, receipt)`` once ``tx_hash`` is mined.

    Uses the standard ``eth_getTransactionReceipt`` lookup.
    """
    return _wait_for(w3, tx_hash, w3.eth.get_transaction_receipt, callback, poll_interval)


def wait_for_sandbox_receipt(
    w3: Web3,
    tx_hash,
    callback: ReceiptCallback,
    poll_interval: float = HelperSettings.poll_interval,
) -> BlockWatcher:
    """Like ``wait_for_receipt`` but asks the sandbox node via ``sandbox_receipt``."""
    attach_sandbox(w3)
    return _wait_for(w3, tx_hash, w3.sandbox.receipt, callback, poll_interval)
