"""
Data recorder for the path bounds decider.
Records one entry per planning cycle (corridor, ego state, outcome) to HDF5.
"""

import h5py
import numpy as np
import json
import logging
from pathlib import Path
from typing import Optional, List
from datetime import datetime

from .formats.data_format import PathBoundsRecord

logger = logging.getLogger(__name__)


class PathBoundsRecorder:
    """Records path bounds decisions to HDF5 format."""

    def __init__(self, output_dir: str, recording_name: Optional[str] = None,
                 flush_every: int = 30):
        """
        Initialize recorder.

        Args:
            output_dir: Directory to save recordings
            recording_name: Name for this recording (default: timestamp)
            flush_every: Number of buffered cycles that triggers a write
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if recording_name is None:
            recording_name = f"path_bounds_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        self.recording_name = recording_name
        self.output_file = self.output_dir / f"{recording_name}.h5"

        self.h5_file = h5py.File(self.output_file, 'w')
        self._create_datasets()

        self.record_buffer: List[PathBoundsRecord] = []
        self.flush_every = max(1, int(flush_every))
        self.cycle_count = 0
        self.station_count = 0

        self.metadata = {
            "recording_start_time": datetime.now().isoformat(),
            "recording_name": recording_name,
            "recording_type": "path_bounds",
        }

    def _create_datasets(self):
        """Create extensible HDF5 datasets."""
        max_shape = (None,)
        str_dtype = h5py.string_dtype(encoding="utf-8")

        # Stations of all cycles, concatenated; cycles/station_offset indexes them.
        for name in ("stations/s", "stations/l_min", "stations/l_max"):
            self.h5_file.create_dataset(name, shape=(0,), maxshape=max_shape, dtype=np.float64)

        for name, dtype in (
            ("cycles/timestamps", np.float64),
            ("cycles/cycle_ids", np.int64),
            ("cycles/station_offset", np.int64),
            ("cycles/station_count", np.int32),
            ("cycles/adc_s", np.float64),
            ("cycles/adc_l", np.float64),
            ("cycles/adc_s_dot", np.float64),
            ("cycles/adc_l_dot", np.float64),
            ("cycles/blocked_s", np.float64),
            ("cycles/timed_out", np.bool_),
            ("cycles/label", str_dtype),
            ("cycles/lane_id", str_dtype),
            ("cycles/blocking_obstacle_id", str_dtype),
            ("cycles/failure_reason", str_dtype),
            ("cycles/attempts", str_dtype),  # JSON
        ):
            self.h5_file.create_dataset(name, shape=(0,), maxshape=max_shape, dtype=dtype)

    def record_cycle(self, record: PathBoundsRecord):
        """Buffer one cycle; flushes every flush_every cycles."""
        self.record_buffer.append(record)
        if len(self.record_buffer) >= self.flush_every:
            self.flush()

    def flush(self):
        """Write buffered cycles to disk."""
        if not self.record_buffer:
            return
        records = self.record_buffer
        self.record_buffer = []
        self._write_records(records)
        self.h5_file.flush()

    @staticmethod
    def _append(dataset, values):
        start = dataset.shape[0]
        dataset.resize((start + len(values),))
        dataset[start:] = values

    def _write_records(self, records: List[PathBoundsRecord]):
        offsets = []
        offset = self.station_count
        for record in records:
            offsets.append(offset)
            offset += record.num_stations

        if offset > self.station_count:
            self._append(self.h5_file["stations/s"], np.concatenate([r.s for r in records]))
            self._append(self.h5_file["stations/l_min"], np.concatenate([r.l_min for r in records]))
            self._append(self.h5_file["stations/l_max"], np.concatenate([r.l_max for r in records]))

        cycles = self.h5_file["cycles"]
        self._append(cycles["timestamps"], [r.timestamp for r in records])
        self._append(cycles["cycle_ids"], [r.cycle_id for r in records])
        self._append(cycles["station_offset"], offsets)
        self._append(cycles["station_count"], [r.num_stations for r in records])
        self._append(cycles["adc_s"], [r.ego.s for r in records])
        self._append(cycles["adc_l"], [r.ego.l for r in records])
        self._append(cycles["adc_s_dot"], [r.ego.s_dot for r in records])
        self._append(cycles["adc_l_dot"], [r.ego.l_dot for r in records])
        self._append(cycles["blocked_s"], [r.blocked_s for r in records])
        self._append(cycles["timed_out"], [r.timed_out for r in records])
        self._append(cycles["label"], [r.label for r in records])
        self._append(cycles["lane_id"], [r.ego.lane_id or "" for r in records])
        self._append(cycles["blocking_obstacle_id"], [r.blocking_obstacle_id for r in records])
        self._append(cycles["failure_reason"], [r.failure_reason for r in records])
        self._append(cycles["attempts"], [json.dumps(r.attempts, sort_keys=True) for r in records])

        self.station_count = offset
        self.cycle_count += len(records)
        failed = sum(1 for r in records if not r.ok)
        if failed:
            logger.warning(f"[RECORDER] {failed}/{len(records)} recorded cycle(s) had no path boundary")

    def close(self):
        """Close the recording file."""
        try:
            self.flush()
        except Exception as e:
            logger.error(f"Error during final flush: {e}", exc_info=True)

        self.metadata["recording_end_time"] = datetime.now().isoformat()
        self.metadata["total_cycles"] = self.cycle_count
        try:
            self.h5_file.attrs["metadata"] = json.dumps(self.metadata, indent=2)
        except Exception as e:
            logger.warning(f"Failed to save metadata: {e}")

        self.h5_file.close()
        logger.info(f"[RECORDER] Recording saved to: {self.output_file}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
