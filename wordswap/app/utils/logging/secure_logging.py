"""
Secure logging utilities.

Search strings and document text are user content. These helpers log operation
summaries (counts, timings, page numbers) while dropping any content-bearing keys.
"""
import json

from wordswap.app.utils.logging.logger import log_info

# Metadata keys that may carry document text or user search strings.
SENSITIVE_METADATA_KEYS = [
    'text', 'content', 'words', 'find_text', 'replace_text', 'pairs', 'report_lines', 'fragments'
]


def log_sensitive_operation(operation_name: str, match_count: int, processing_time: float, **metadata) -> None:
    """
    Log an operation over user content without including the content itself.

    Parameters:
        operation_name (str): Name of the operation being performed.
        match_count (int): Number of matches (or items) produced by the operation.
        processing_time (float): Time taken for processing.
        **metadata: Additional metadata to log, excluding keys that could contain user content.

    Returns:
        None
    """
    # Log the operation summary with a [SENSITIVE] prefix
    log_info(f"[SENSITIVE] {operation_name}: produced {match_count} matches in {processing_time:.2f}s")
    if metadata:
        # Drop top-level keys that may hold content
        sanitized_metadata = {k: v for k, v in metadata.items() if k not in SENSITIVE_METADATA_KEYS}
        # Drop the same keys one level down
        for key in list(sanitized_metadata.keys()):
            if isinstance(sanitized_metadata[key], dict):
                sanitized_metadata[key] = {
                    inner_key: inner_value
                    for inner_key, inner_value in sanitized_metadata[key].items()
                    if inner_key not in SENSITIVE_METADATA_KEYS
                }
        # Log the sanitized metadata as a JSON string with a [METADATA] prefix
        log_info(f"[METADATA] {json.dumps(sanitized_metadata, default=str)}")


def log_batch_operation(operation_name: str, total_items: int, successful_items: int,
                        processing_time: float) -> None:
    """
    Log a fan-out operation without details of individual items.

    Parameters:
        operation_name (str): Name of the operation being performed.
        total_items (int): Total number of items processed.
        successful_items (int): Number of successfully processed items.
        processing_time (float): Time taken for processing.

    Returns:
        None
    """
    log_info(f"[BATCH] {operation_name}: {successful_items}/{total_items} items in {processing_time:.2f}s")
