"""疲劳检测系统入口文件"""

import argparse
import logging
import sys
import time

import cv2

from config import load_config
from detectors.face_detector import FaceDetector
from session.detection_session import DetectionSession
from session.frame_worker import LatestFrameWorker
from session.observer import LoggingObserver

logger = logging.getLogger(__name__)

# 送帧最小间隔，约 10 Hz
_DEFAULT_INTERVAL_MS = 100


def setup_logging(level: str = "INFO") -> None:
    """配置日志格式和级别"""
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers[:] = [handler]


class DetectionSystem:
    """疲劳检测主程序，把摄像头帧交给关键点检测和检测会话。"""

    def __init__(self, config_path=None, camera_index=0, interval_ms=_DEFAULT_INTERVAL_MS):
        self.camera_index = camera_index
        self.interval_ms = interval_ms
        self._cap = None
        self._worker = None

        self.face_detector = FaceDetector()
        self.session = DetectionSession(load_config(config_path), observer=LoggingObserver())

    @staticmethod
    def _now_ms() -> int:
        return int(time.monotonic() * 1000)

    def handle_image(self, item):
        """在处理线程上运行：关键点检测 + 疲劳检测"""
        image, timestamp_ms = item
        landmarks = self.face_detector.detect(image, timestamp_ms)
        return self.session.process_frame(landmarks)

    def run(self, calibrate=False):
        """启动主检测循环。"""
        self._cap = cv2.VideoCapture(self.camera_index)

        if not self._cap.isOpened():
            logger.error("无法打开摄像头 %d", self.camera_index)
            sys.exit(1)

        self.session.start()
        if calibrate:
            self.session.start_calibration(self._now_ms())

        self._worker = LatestFrameWorker(self.handle_image)
        try:
            self._main_loop()
        except KeyboardInterrupt:
            logger.info("收到中断信号")
        finally:
            self.stop()

    def _main_loop(self):
        """视频流主循环，按固定间隔送帧，处理线程忙时丢帧。"""
        last_submit_ms = None
        while True:
            ret, frame = self._cap.read()
            if not ret:
                continue

            now_ms = self._now_ms()
            if last_submit_ms is not None and now_ms - last_submit_ms < self.interval_ms:
                continue
            if self._worker.submit((frame, now_ms)):
                last_submit_ms = now_ms

    def stop(self):
        """停止处理线程，释放摄像头和关键点模型。"""
        if self._worker is not None:
            self._worker.stop()
            logger.info("已处理 %d 帧，丢弃 %d 帧", self._worker.processed_count, self._worker.dropped_count)
            self._worker = None
        self.session.stop()
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        self.face_detector.close()


def main():
    parser = argparse.ArgumentParser(description="疲劳检测系统")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 阈值配置文件路径",
    )
    parser.add_argument("--camera", type=int, default=0, help="摄像头编号")
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=_DEFAULT_INTERVAL_MS,
        help="送帧最小间隔（毫秒）",
    )
    parser.add_argument("--calibrate", action="store_true", help="启动后先进行 15 秒基线校准")
    parser.add_argument("--log-level", default="INFO", help="日志级别")
    args = parser.parse_args()

    setup_logging(args.log_level)
    system = DetectionSystem(
        config_path=args.config,
        camera_index=args.camera,
        interval_ms=args.interval_ms,
    )
    system.run(calibrate=args.calibrate)


if __name__ == "__main__":
    main()
