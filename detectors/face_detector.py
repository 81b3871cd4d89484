"""人脸关键点检测模块，基于 MediaPipe FaceMesh，输出 LandmarkFrame"""

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import LandmarkFrame


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸关键点"""

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
        face_mesh=None,
    ):
        """初始化 MediaPipe FaceMesh；face_mesh 可传入已创建的实例"""
        if face_mesh is None:
            face_mesh = mp.solutions.face_mesh.FaceMesh(
                max_num_faces=max_num_faces,
                min_detection_confidence=min_detection_confidence,
                min_tracking_confidence=0.5,
                refine_landmarks=False,
            )
        self._face_mesh = face_mesh

    def detect(self, frame: np.ndarray, timestamp_ms: int) -> LandmarkFrame:
        """
        检测单帧图像中的人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧
            timestamp_ms: 帧时间戳（毫秒）

        Returns:
            LandmarkFrame，坐标为归一化 (x, y, z)；未检测到人脸时 faces 为空
        """
        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return LandmarkFrame(timestamp_ms=timestamp_ms)

        faces = [
            [(lm.x, lm.y, lm.z) for lm in face.landmark]
            for face in results.multi_face_landmarks
        ]
        return LandmarkFrame(timestamp_ms=timestamp_ms, faces=faces)

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
