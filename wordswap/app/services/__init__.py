"""
Services package for orchestrating document processing.

This package contains the high-level service that coordinates the
extraction, matching, report and augmentation stages.
"""
from wordswap.app.services.replacement_report_service import ReplacementReportService, PipelineRun

# Export classes
__all__ = [
    "ReplacementReportService",
    "PipelineRun",
]
