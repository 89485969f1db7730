"""
Scout payload decoding.

Turns one raw JSON payload into a Snapshot. The envelope (count, signature,
data) is validated with pydantic; each record is then decoded field by field
from a table so that null, quoted and bare tokens are handled uniformly.
"""

import json
from typing import Any, BinaryIO, Callable

from pydantic import ValidationError

from scoutscrape.core.constants import EXPECTED_VERSION
from scoutscrape.core.errors import DecodeError, VersionMismatchError
from scoutscrape.core.models import HazardRecord, Snapshot, SnapshotEnvelope
from scoutscrape.core.nullable import (
    decode_float,
    decode_int,
    decode_text,
    decode_timestamp,
    is_present,
)
from scoutscrape.observability.logger import get_logger

logger = get_logger(__name__)

# (JSON key, HazardRecord attribute, decoder) for every non-identity field
RECORD_FIELDS: tuple[tuple[str, str, Callable[[str, Any], Any]], ...] = (
    ("H", "h", decode_float),
    ("rating", "rating", decode_int),
    ("caDist", "ca_dist", decode_float),
    ("moid", "moid", decode_float),
    ("neoScore", "neo_score", decode_int),
    ("neo1kmScore", "neo_1km_score", decode_int),
    ("phaScore", "pha_score", decode_int),
    ("ieoScore", "ieo_score", decode_int),
    ("geocentricScore", "geocentric_score", decode_int),
    ("tisserandScore", "tisserand_score", decode_int),
    ("unc", "unc", decode_float),
    ("uncP1", "unc_p1", decode_float),
    ("ra", "ra", decode_text),
    ("dec", "dec", decode_text),
    ("elong", "elong", decode_text),
    ("tEphem", "t_ephem", decode_timestamp),
    ("rate", "rate", decode_float),
    ("nObs", "n_obs", decode_int),
    ("arc", "arc", decode_float),
    ("vInf", "v_inf", decode_float),
    ("rmsN", "rms_n", decode_float),
    ("Vmag", "vmag", decode_float),
)


def decode_record(raw: dict[str, Any]) -> HazardRecord:
    """
    Decode one element of the payload's ``data`` array.

    Missing keys decode exactly like explicit nulls. The identity fields
    are required because they form the table's primary key.

    Args:
        raw: Parsed JSON object for one record

    Returns:
        HazardRecord

    Raises:
        DecodeError: If any field token is malformed or an identity
            field is missing
    """
    object_name = raw.get("objectName")
    if not isinstance(object_name, str) or not object_name:
        raise DecodeError("a non-empty object name is required", "objectName", object_name)

    last_run = decode_timestamp("lastRun", raw.get("lastRun"))
    if not is_present(last_run):
        raise DecodeError("the analysis run time is required", "lastRun", raw.get("lastRun"))

    values = {attr: decode(key, raw.get(key)) for key, attr, decode in RECORD_FIELDS}
    return HazardRecord(object_name=object_name, last_run=last_run.value, **values)


class SnapshotDecoder:
    """
    Decodes payload streams into Snapshots and checks their version.
    """

    def __init__(self, expected_version: str = EXPECTED_VERSION):
        self.expected_version = expected_version

    def decode(self, stream: BinaryIO, origin: str | None = None) -> Snapshot:
        """
        Decode exactly one payload.

        The version is not checked here; see check_version().

        Args:
            stream: Binary stream positioned at the start of the payload
            origin: Cache file name or URL, used in error messages

        Returns:
            Snapshot

        Raises:
            DecodeError: On malformed JSON, a malformed envelope or a
                malformed record field
        """
        try:
            document = json.load(stream)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"invalid JSON: {e}", origin=origin) from e

        if not isinstance(document, dict):
            raise DecodeError(
                f"expected a JSON object, got {type(document).__name__}", origin=origin
            )

        try:
            envelope = SnapshotEnvelope.model_validate(document)
        except ValidationError as e:
            raise DecodeError(f"unexpected payload structure: {e}", origin=origin) from e

        records = []
        for index, raw in enumerate(envelope.data):
            try:
                records.append(decode_record(raw))
            except DecodeError as e:
                raise DecodeError(
                    e.message, f"data[{index}].{e.field_name}", e.raw_token, origin=origin
                ) from e

        return Snapshot(
            version=envelope.signature.version,
            source=envelope.signature.source,
            count=envelope.count,
            records=tuple(records),
            origin=origin,
        )

    def check_version(self, snapshot: Snapshot) -> Snapshot:
        """
        Raises:
            VersionMismatchError: If the snapshot declares another version
        """
        if snapshot.version != self.expected_version:
            raise VersionMismatchError(snapshot.version, self.expected_version, snapshot.origin)
        return snapshot
