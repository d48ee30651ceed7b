"""
Error taxonomy for the detector.

LoadError   - model/metadata missing or malformed; the feature stays disabled.
DeviceError - camera permission/hardware failure; the session stays idle.
FrameError  - a single refresh/paint failed inside the render loop.
DataError   - a prediction set too short to interpret.
"""


class DetectorError(Exception):
    pass


class LoadError(DetectorError):
    pass


class DeviceError(DetectorError):
    pass


class FrameError(DetectorError):
    pass


class DataError(DetectorError):
    pass
