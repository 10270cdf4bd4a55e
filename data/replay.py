"""
Replay utility for path bounds recordings.
Reads back the per-cycle records written by PathBoundsRecorder.
"""

import h5py
import json
import numpy as np
from pathlib import Path
from typing import Iterator

from .formats.data_format import EgoFrenetSnapshot, PathBoundsRecord


def _as_str(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class PathBoundsReplay:
    """Replay recorded path bounds decisions."""

    def __init__(self, recording_file: str):
        """
        Initialize replay.

        Args:
            recording_file: Path to HDF5 recording file
        """
        self.recording_file = Path(recording_file)
        if not self.recording_file.exists():
            raise FileNotFoundError(f"Recording file not found: {recording_file}")

        self.h5_file = h5py.File(self.recording_file, 'r')
        self._load_metadata()

    def _load_metadata(self):
        """Load recording metadata."""
        if "metadata" in self.h5_file.attrs:
            self.metadata = json.loads(self.h5_file.attrs["metadata"])
        else:
            self.metadata = {}

    def __len__(self) -> int:
        if "cycles/timestamps" not in self.h5_file:
            return 0
        return int(self.h5_file["cycles/timestamps"].shape[0])

    def get_records(self) -> Iterator[PathBoundsRecord]:
        """
        Get recorded cycles iterator.

        Yields:
            PathBoundsRecord per recorded cycle, in recording order
        """
        if len(self) == 0:
            return

        cycles = self.h5_file["cycles"]
        station_s = self.h5_file["stations/s"][:]
        station_l_min = self.h5_file["stations/l_min"][:]
        station_l_max = self.h5_file["stations/l_max"][:]

        for i in range(len(self)):
            start = int(cycles["station_offset"][i])
            end = start + int(cycles["station_count"][i])
            lane_id = _as_str(cycles["lane_id"][i])
            yield PathBoundsRecord(
                timestamp=float(cycles["timestamps"][i]),
                cycle_id=int(cycles["cycle_ids"][i]),
                ego=EgoFrenetSnapshot(
                    s=float(cycles["adc_s"][i]),
                    l=float(cycles["adc_l"][i]),
                    s_dot=float(cycles["adc_s_dot"][i]),
                    l_dot=float(cycles["adc_l_dot"][i]),
                    lane_id=lane_id or None,
                ),
                s=np.array(station_s[start:end]),
                l_min=np.array(station_l_min[start:end]),
                l_max=np.array(station_l_max[start:end]),
                label=_as_str(cycles["label"][i]),
                blocking_obstacle_id=_as_str(cycles["blocking_obstacle_id"][i]),
                blocked_s=float(cycles["blocked_s"][i]),
                timed_out=bool(cycles["timed_out"][i]),
                failure_reason=_as_str(cycles["failure_reason"][i]),
                attempts=json.loads(_as_str(cycles["attempts"][i])),
            )

    def close(self):
        """Close the recording file."""
        self.h5_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
