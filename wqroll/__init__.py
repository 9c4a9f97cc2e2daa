"""
WQ Rolling Summaries
====================

Water-quality rolling averages at BMI sampling dates for the Deer Creek
(SSI) monitoring sites:

- loader: fetch and parse the WQ, site-code and BMI-date tables
- cleaning: legacy site codes, detection-limit censoring, water years
- grid / alignment: dense per-site daily calendar and readings joined onto it
- rolling: 30/90/180/365-day trailing means
- sampling / enrich: BMI sample-day join, season labels and output schema
"""

from .exceptions import JoinKeyMismatch, ParseError, SourceUnavailableError, WQPipelineError
from .pipeline import run_pipeline

__all__ = [
    'run_pipeline',
    'WQPipelineError',
    'SourceUnavailableError',
    'ParseError',
    'JoinKeyMismatch',
]
