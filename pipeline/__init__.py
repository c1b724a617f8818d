"""pipeline

Runtime for the batch driver: configuration, corpus loading, classification
and the execution layer (dispatch, monitor, collect).
"""
