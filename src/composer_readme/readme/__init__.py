"""README processing: markdown clean-up and usage-example extraction."""

from composer_readme.readme.cleaner import clean_markdown, extract_description
from composer_readme.readme.extractor import MAX_USAGE_EXAMPLES, parse_usage_examples

__all__ = [
    "MAX_USAGE_EXAMPLES",
    "clean_markdown",
    "extract_description",
    "parse_usage_examples",
]
