"""
Small building blocks shared by the rest of the package: event sources, background loops,
retry pacing and value-object equality.
"""
