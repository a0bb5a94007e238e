"""Task/epic aggregation engine for the team dashboard.

This package derives every view the dashboard screens share from one
in-memory task snapshot: display ids, epic grouping and rollups, the
incrementally maintained epic count ledger, KPI summaries, listing filters,
and paste segmentation for the task draft form. Transport and persistence
belong to the REST collaborator and are not handled here.
"""
