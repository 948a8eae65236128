"""
mzML instrument data store using pyteomics.

This module provides the MzMLDataStore class, which exposes an mzML
file, the standard open format for mass spectrometry data interchange,
through the InstrumentDataStore interface. Vendor files converted with
msconvert keep their scan numbers and filter strings, so reports over
the converted file line up with the original acquisition.

mzML carries no status log and no instrument method text; the store
reports both as empty. Trailer values are taken from the scalar
parameters of each spectrum's scan description.
"""

import logging
from dataclasses import replace
import re
from pathlib import Path
from typing import ClassVar, Optional

import numpy as np
from lxml import etree
from numpy.typing import NDArray

from ..base import DeviceKind, InstrumentDataStore, RunHeader
from ..registry import StoreRegistry, Vendor
from ...core import (
    ActivationType,
    CentroidData,
    ChannelNotFoundError,
    FilterDescriptor,
    GenericDataType,
    LogEntry,
    LogField,
    MSOrder,
    OpenError,
    Polarity,
    RawScanData,
    Reaction,
    ScanEvent,
    ScanReadError,
    SpectrumType,
    parse_filter_string,
)


logger = logging.getLogger(__name__)


# Dissociation CV term names as pyteomics reports them
_ACTIVATION_MAP: dict[str, ActivationType] = {
    'collision-induced dissociation': ActivationType.CID,
    'beam-type collision-induced dissociation': ActivationType.HCD,
    'higher energy beam-type collision-induced dissociation': ActivationType.HCD,
    'electron transfer dissociation': ActivationType.ETD,
    'electron capture dissociation': ActivationType.ECD,
    'ultraviolet photodissociation': ActivationType.UVPD,
    'infrared multiphoton dissociation': ActivationType.IRMPD,
    'pulsed q dissociation': ActivationType.PQD,
}

# Spectrum-level keys that are data arrays or structure, never trailer values
_NON_TRAILER_KEYS = {
    'id', 'index', 'defaultArrayLength', 'count', 'm/z array', 'intensity array',
    'charge array', 'scanWindowList', 'scanList', 'precursorList',
}


_ID_FIELD = re.compile(r'(\w+)=(\d+)')


def _scan_number_from_id(native_id: str, position: int) -> int:
    """
    Scan number of a spectrum from its native id.

    Thermo ids ("controllerType=0 controllerNumber=1 scan=123") and
    "scan=" or "spectrum=" ids give their number directly. Zero-based
    "index=" ids and ids with no usable field fall back to position + 1.
    """
    if native_id.isdigit():
        return int(native_id)
    id_fields = dict(_ID_FIELD.findall(native_id))
    for key in ('scan', 'spectrum'):
        if key in id_fields:
            return int(id_fields[key])
    if 'index' in id_fields:
        return int(id_fields['index']) + 1
    return position + 1


def _first_scan_info(spectrum_data: dict) -> dict:
    """The first scan description of a spectrum, or an empty dict."""
    scans = spectrum_data.get('scanList', {}).get('scan', [])
    if not scans:
        return {}
    return scans[0] if isinstance(scans, list) else scans


def _parse_retention_time(spectrum_data: dict) -> float:
    """Retention time in minutes; pyteomics attaches the unit as unit_info."""
    rt = _first_scan_info(spectrum_data).get('scan start time')
    if rt is None:
        rt = spectrum_data.get('scan start time', 0.0)
    unit = getattr(rt, 'unit_info', None)
    rt = float(rt or 0.0)
    if unit in ('second', 's', 'UO:0000010'):
        rt /= 60.0
    return rt


def _parse_filter(spectrum_data: dict) -> FilterDescriptor:
    """Scan filter from the filter string, completed from CV terms."""
    text = _first_scan_info(spectrum_data).get('filter string') or spectrum_data.get('filter string', '')
    scan_filter = parse_filter_string(str(text))

    updates = {}
    if scan_filter.ms_order == MSOrder.UNKNOWN:
        updates['ms_order'] = MSOrder.from_level(spectrum_data.get('ms level'))
    if scan_filter.polarity == Polarity.UNKNOWN:
        if 'positive scan' in spectrum_data:
            updates['polarity'] = Polarity.POSITIVE
        elif 'negative scan' in spectrum_data:
            updates['polarity'] = Polarity.NEGATIVE
    if scan_filter.peak_mode == SpectrumType.UNKNOWN:
        if 'profile spectrum' in spectrum_data:
            updates['peak_mode'] = SpectrumType.PROFILE
        elif 'centroid spectrum' in spectrum_data:
            updates['peak_mode'] = SpectrumType.CENTROID
    if not updates:
        return scan_filter
    return replace(scan_filter, **updates)


def _parse_activation_type(activation_info: dict) -> ActivationType:
    """First known dissociation term in an activation element."""
    for key in activation_info:
        activation = _ACTIVATION_MAP.get(key.lower())
        if activation is not None:
            return activation
    return ActivationType.UNKNOWN


def _parse_reactions(spectrum_data: dict) -> tuple[Reaction, ...]:
    """Precursor reactions, one per precursor element, in document order."""
    precursors = spectrum_data.get('precursorList', {}).get('precursor', [])
    if isinstance(precursors, dict):
        precursors = [precursors]

    reactions = []
    for prec in precursors:
        isolation = prec.get('isolationWindow', {})
        mz = isolation.get('isolation window target m/z')
        if mz is None:
            ions = prec.get('selectedIonList', {}).get('selectedIon', [])
            ion = (ions[0] if isinstance(ions, list) else ions) if ions else {}
            mz = ion.get('selected ion m/z')
        if mz is None:
            continue

        lower = isolation.get('isolation window lower offset') or 0.0
        upper = isolation.get('isolation window upper offset') or 0.0
        activation = prec.get('activation', {})
        energy = activation.get('collision energy')
        if energy is None:
            energy = activation.get('normalized collision energy', 0.0)

        reactions.append(Reaction(
            precursor_mass=float(mz),
            collision_energy=float(energy or 0.0),
            isolation_width=float(lower) + float(upper),
            activation_type=_parse_activation_type(activation),
        ))
    return tuple(reactions)


def _parse_raw(spectrum_data: dict) -> RawScanData:
    """Spectral arrays; centroid spectra become the centroid (label) data."""
    mz = np.asarray(spectrum_data.get('m/z array', ()), dtype=np.float64)
    intensity = np.asarray(spectrum_data.get('intensity array', ()), dtype=np.float64)
    if 'centroid spectrum' not in spectrum_data:
        return RawScanData(mz, intensity)

    charges = spectrum_data.get('charge array')
    if charges is None:
        charges = np.zeros(len(mz), dtype=np.int32)
    centroid = CentroidData(mz, intensity, np.asarray(charges, dtype=np.int32))
    empty = np.empty(0, dtype=np.float64)
    return RawScanData(empty, empty.copy(), centroid)


def _trailer_pairs(spectrum_data: dict) -> list[tuple[str, object]]:
    """Scalar parameters of a spectrum and its first scan, as trailer pairs."""
    pairs = []
    for source in (_first_scan_info(spectrum_data), spectrum_data):
        for key, value in source.items():
            if key in _NON_TRAILER_KEYS or isinstance(value, (dict, list, tuple, np.ndarray)):
                continue
            pairs.append((key, value))
    return pairs


def _data_type(value: object) -> GenericDataType:
    if value is None or value == '':
        return GenericDataType.NULL
    if isinstance(value, bool) or isinstance(value, int):
        return GenericDataType.INT
    if isinstance(value, float):
        return GenericDataType.DOUBLE
    return GenericDataType.STRING


@StoreRegistry.register(Vendor.OPEN_FORMAT)
class MzMLDataStore(InstrumentDataStore):
    """
    Instrument data store for mzML files using pyteomics.

    Example:
        >>> with MzMLDataStore("sample.mzML") as store:
        ...     record = load_scan(store, store.first_scan)
    """

    vendor: ClassVar[str] = "Open Format"
    supported_extensions: ClassVar[list[str]] = ['.mzml']

    def __init__(self, path: Path | str):
        """
        Initialize the mzML store.

        Args:
            path: Path to the mzML file.
        """
        super().__init__(path)
        self._reader = None
        self._scan_ids: dict[int, str] = {}
        self._cached: Optional[tuple[int, dict]] = None
        self._run_header: Optional[RunHeader] = None
        self._run_metadata: Optional[dict] = None

    @classmethod
    def is_available(cls) -> bool:
        """True when pyteomics can be imported."""
        try:
            import pyteomics.mzml  # noqa: F401
            return True
        except ImportError:
            return False

    def open(self) -> None:
        """Open the file and index its spectra by scan number."""
        from pyteomics import mzml
        from pyteomics.auxiliary import PyteomicsError

        try:
            self._reader = mzml.MzML(str(self.path))
        except (OSError, ValueError, etree.XMLSyntaxError, PyteomicsError) as e:
            raise OpenError(f"Unable to open {self.path}: {e}") from e
        self._build_index()

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        self._cached = None

    def _build_index(self) -> None:
        """Map scan numbers to spectrum native IDs."""
        native_ids: list[str] = []
        index = getattr(self._reader, 'index', None)
        if index:
            # offsets are keyed by element name
            if 'spectrum' in index:
                native_ids = list(index['spectrum'].keys())
        self._scan_ids = {
            _scan_number_from_id(native_id, position): native_id
            for position, native_id in enumerate(native_ids)
        }
        logger.debug(f"Indexed {len(self._scan_ids)} spectra in {self.path.name}")

    def _spectrum(self, scan_number: int) -> dict:
        if self._reader is None:
            raise RuntimeError("Store not opened. Use 'with' context manager.")
        if self._cached is not None and self._cached[0] == scan_number:
            return self._cached[1]
        native_id = self._scan_ids.get(scan_number)
        if native_id is None:
            raise ScanReadError(scan_number, "scan not present in file")
        try:
            spectrum_data = self._reader.get_by_id(native_id)
        except (KeyError, ValueError, OSError) as e:
            raise ScanReadError(scan_number, str(e)) from e
        self._cached = (scan_number, spectrum_data)
        return spectrum_data

    # -------------------------------------------------------------------------
    # File state and device selection
    # -------------------------------------------------------------------------

    @property
    def run_metadata(self) -> dict:
        """Instrument configuration and software read from the mzML header, cached."""
        if self._run_metadata is not None:
            return self._run_metadata

        metadata: dict = {'source_file': str(self.path)}
        if self._reader is None:
            return metadata

        try:
            for inst in self._reader.iterfind('instrumentConfigurationList/instrumentConfiguration'):
                for key in inst:
                    if key not in ('id', 'componentList', 'softwareRef', 'ref'):
                        metadata.setdefault('instrument_model', key)
                if 'instrument serial number' in inst:
                    metadata['instrument_serial'] = inst.get('instrument serial number')
                break
            for soft in self._reader.iterfind('softwareList/software'):
                metadata['software_version'] = soft.get('version', '')
                break
        except (KeyError, ValueError, AttributeError) as e:
            logger.debug(f"Incomplete mzML header in {self.path.name}: {e}")
        finally:
            self._reader.reset()

        self._run_metadata = metadata
        return metadata

    def instrument_count(self, device: Optional[DeviceKind] = None) -> int:
        if device is None or device == DeviceKind.MS:
            return 1
        return 0

    def select_channel(self, device: DeviceKind, index: int) -> None:
        if device != DeviceKind.MS or index != 1:
            raise ChannelNotFoundError(f"No {device.name} device with index {index} in {self.path.name}")
        self._device = device
        self._device_index = index

    @property
    def run_header(self) -> RunHeader:
        """Run header, computed once from a pass over all spectra."""
        if self._run_header is not None:
            return self._run_header
        if not self._scan_ids:
            return RunHeader(first_scan=1, last_scan=0)

        first, last = min(self._scan_ids), max(self._scan_ids)
        low_mass, high_mass = np.inf, -np.inf
        self._reader.reset()
        for spectrum_data in self._reader:
            low = spectrum_data.get('lowest observed m/z')
            high = spectrum_data.get('highest observed m/z')
            if low is not None:
                low_mass = min(low_mass, float(low))
            if high is not None:
                high_mass = max(high_mass, float(high))
        self._reader.reset()

        self._run_header = RunHeader(
            first_scan=first,
            last_scan=last,
            start_time=self.retention_time(first),
            end_time=self.retention_time(last),
            low_mass=float(low_mass) if np.isfinite(low_mass) else 0.0,
            high_mass=float(high_mass) if np.isfinite(high_mass) else 0.0,
        )
        return self._run_header

    # -------------------------------------------------------------------------
    # Scan access
    # -------------------------------------------------------------------------

    def retention_time(self, scan_number: int) -> float:
        return _parse_retention_time(self._spectrum(scan_number))

    def filter_for(self, scan_number: int) -> FilterDescriptor:
        return _parse_filter(self._spectrum(scan_number))

    def scan_event_for(self, scan_number: int) -> ScanEvent:
        spectrum_data = self._spectrum(scan_number)
        return ScanEvent(
            reactions=_parse_reactions(spectrum_data),
            analyzer=_parse_filter(spectrum_data).analyzer,
        )

    def raw_scan(self, scan_number: int) -> RawScanData:
        return _parse_raw(self._spectrum(scan_number))

    # -------------------------------------------------------------------------
    # Trailer and status logs
    # -------------------------------------------------------------------------

    def trailer_fields(self) -> list[LogField]:
        """Trailer catalog taken from the first spectrum."""
        if not self._scan_ids:
            return []
        pairs = _trailer_pairs(self._spectrum(min(self._scan_ids)))
        return [
            LogField(label=label, data_type=_data_type(value), position=position)
            for position, (label, value) in enumerate(pairs)
        ]

    def trailer_entry(self, scan_number: int) -> LogEntry:
        return LogEntry.from_pairs(_trailer_pairs(self._spectrum(scan_number)))

    def status_fields(self) -> list[LogField]:
        return []

    def status_sample_times(self) -> NDArray[np.float64]:
        return np.empty(0, dtype=np.float64)

    def status_entry(self, index: int) -> LogEntry:
        raise IndexError(f"mzML files have no status log (sample {index})")

    # -------------------------------------------------------------------------
    # Method text
    # -------------------------------------------------------------------------

    def method_count(self) -> int:
        return 0

    def method_text(self, index: int) -> str:
        raise IndexError(f"mzML files carry no instrument method text (method {index})")
