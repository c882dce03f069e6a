import csv
import os
from typing import Iterable

from branchset.utils.data_types import OutputRow
from branchset.utils.errors import SinkWriteFailure


def ensure_parent_dir(file_path: str):
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def append_rows(output_path: str, rows: Iterable[OutputRow]) -> int:
    """
    Appends `<label>,<encoded_a>,<encoded_b>` lines to output_path, creating the
    file if needed. Existing content is never truncated. Rows written before a
    failure stay in the file. Returns the number of rows written.
    """
    written = 0
    try:
        ensure_parent_dir(output_path)
        with open(output_path, 'a', newline='', encoding='utf-8') as csvfile:
            # Base64 fields contain no commas or quotes, so nothing is ever escaped.
            writer = csv.writer(csvfile, lineterminator="\n")
            for row in rows:
                writer.writerow((row.label, row.encoded_a, row.encoded_b))
                written += 1
    except OSError as e:
        raise SinkWriteFailure(output_path, e) from e
    return written
