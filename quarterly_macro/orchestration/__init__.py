"""
Multi-step workflow: concurrent extraction, the transform chain and the
load phase that hands the wide table to every sink.
"""
