"""Browser-side execution modules (Playwright).

``session`` owns the single shared Chromium process, ``capture``
intercepts and deduplicates API responses during navigation,
``sandbox`` runs extraction scripts inside the page, and ``pagination``
drives next-page traversal and merges per-page results.
"""
