"""Clusterforge build output — Rich rendering of build reports.

Modules
-------
renderer
    ``BuildRenderer`` turns a ``BuildReport`` into Rich renderables: the
    resolved assets with their resolution source, and the files written.
"""
