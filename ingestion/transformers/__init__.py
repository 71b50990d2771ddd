"""
Transforms: pure functions from one raw record to one Document.

    base: TransformContext, Transform alias, require(), generate_slug()
    zapier: Zapier app directory
    gs1: GS1 CBV business steps, dispositions, event types
    onet: O*NET occupations and tasks
    naics: NAICS industries
    feed: RSS/Atom entries
"""

__all__ = [
    "Transform",
    "TransformContext",
    "generate_slug",
]
