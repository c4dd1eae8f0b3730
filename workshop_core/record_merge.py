"""
Merge scraped page signals into structured API records.

All functions here are pure: inputs are never mutated, so running a merge
twice on the same inputs gives the same output.
"""

from typing import List, Optional

from .identifiers import record_identifier

# Fields exposed on batch records. Anything else the API adds is dropped.
BATCH_RECORD_FIELDS = [
    'result',
    'publishedfileid',
    'filename',
    'file_size',
    'file_url',
    'preview_url',
    'title',
]

# Result code telling the client not to download the record's own file
DO_NOT_DOWNLOAD_RESULT = 0

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif')

PREVIEW_TYPE_IMAGE = 0


def is_image_filename(filename: Optional[str]) -> bool:
    """Check if a filename has an image extension (case-insensitive)."""
    return (filename or '').lower().endswith(IMAGE_EXTENSIONS)


def _child_refs(record: dict) -> List[dict]:
    """Identifier-only child references with canonical string ids."""
    children = []
    for child in record.get('children') or []:
        if not isinstance(child, dict):
            continue
        identifier = record_identifier(child)
        if identifier is not None:
            children.append({'publishedfileid': identifier})
    return children


def append_dependencies(children: List[dict], dependency_ids: List[str], own_id: str) -> List[dict]:
    """
    Return `children` plus every dependency not already listed.

    The record's own id is never added.
    """
    merged = list(children)
    known = {child['publishedfileid'] for child in merged}
    for dependency_id in dependency_ids:
        dependency_id = str(dependency_id)
        if dependency_id == own_id or dependency_id in known:
            continue
        merged.append({'publishedfileid': dependency_id})
        known.add(dependency_id)
    return merged


def normalize_batch_record(record: dict, dependency_ids: Optional[List[str]] = None) -> dict:
    """
    Build the outward-facing batch record.

    Args:
        record: Raw record from the file details API
        dependency_ids: Scraped dependencies to fold into `children`

    Returns:
        Record limited to BATCH_RECORD_FIELDS plus `children`. Records that
        have children and whose own file is an image (a collection
        thumbnail) get DO_NOT_DOWNLOAD_RESULT.
    """
    result = {field: record.get(field) for field in BATCH_RECORD_FIELDS}
    own_id = record_identifier(record)
    if own_id is not None:
        result['publishedfileid'] = own_id

    children = _child_refs(record)
    if dependency_ids:
        children = append_dependencies(children, dependency_ids, own_id)
    result['children'] = children

    if children and is_image_filename(record.get('filename')):
        result['result'] = DO_NOT_DOWNLOAD_RESULT

    return result


def merge_batch_records(
    records: List[dict],
    requested_ids: List[str],
    dependency_ids: Optional[List[str]] = None
) -> List[dict]:
    """
    Normalize a batch of API records, adding scraped dependencies.

    Dependencies only apply to single-id batches, and only to the record
    whose id matches the requested id.
    """
    target_id = requested_ids[0] if len(requested_ids) == 1 else None

    merged = []
    for record in records:
        extra = None
        if target_id is not None and record_identifier(record) == target_id:
            extra = dependency_ids
        merged.append(normalize_batch_record(record, extra))
    return merged


def preview_entry(url: str) -> dict:
    return {'preview_url': url, 'preview_type': PREVIEW_TYPE_IMAGE}


def merge_previews(record: dict, image_urls: List[str]) -> dict:
    """
    Return a detail record with a `previews` list.

    Scraped images replace the API previews and the first one becomes
    `preview_url`. Without scraped images, an existing `preview_url` is
    turned into a single-entry list. With neither, the record is returned
    as-is (copied).
    """
    detail = dict(record)
    own_id = record_identifier(record)
    if own_id is not None:
        detail['publishedfileid'] = own_id

    if image_urls:
        detail['previews'] = [preview_entry(url) for url in image_urls]
        detail['preview_url'] = image_urls[0]
    elif detail.get('preview_url'):
        detail['previews'] = [preview_entry(detail['preview_url'])]

    return detail


def build_detail_envelope(record: dict) -> dict:
    """Wrap a detail record in the file details API envelope."""
    return {
        'response': {
            'result': 1,
            'resultcount': 1,
            'publishedfiledetails': [record],
        }
    }
