"""单线程帧处理器：上一帧仍在处理时直接丢弃新帧"""

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class LatestFrameWorker:
    """在专用线程上逐帧调用 process，处理中到达的帧会被丢弃而不是排队。"""

    def __init__(self, process: Callable[[Any], Any], name: str = "frame-worker"):
        self._process = process
        self._cond = threading.Condition()
        self._pending: Optional[Any] = None
        self._has_pending = False
        self._busy = False
        self._running = True
        self.dropped_count = 0
        self.processed_count = 0
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)
        self._thread.start()

    def submit(self, item: Any) -> bool:
        """提交一帧，正在处理上一帧或已停止时返回 False"""
        with self._cond:
            if not self._running or self._busy or self._has_pending:
                self.dropped_count += 1
                return False
            self._pending = item
            self._has_pending = True
            self._busy = True
            self._cond.notify()
            return True

    def _loop(self):
        while True:
            with self._cond:
                while self._running and not self._has_pending:
                    self._cond.wait()
                if not self._running:
                    return
                item = self._pending
                self._pending = None
                self._has_pending = False

            try:
                self._process(item)
            except Exception:
                logger.exception("帧处理失败")
            finally:
                with self._cond:
                    self._busy = False
                    self.processed_count += 1
                    self._cond.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """等待当前帧处理完成"""
        with self._cond:
            return self._cond.wait_for(lambda: not self._busy, timeout=timeout)

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        """停止处理线程，可重复调用；尚未处理的帧直接丢弃"""
        with self._cond:
            self._running = False
            if self._has_pending:
                self._pending = None
                self._has_pending = False
                self._busy = False
            self._cond.notify_all()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
