"""
Pure table transforms applied after extraction: quarterly normalization,
metric renaming, EUR -> USD conversion and the quarter join.
"""
