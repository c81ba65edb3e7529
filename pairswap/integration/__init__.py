"""
Integration layer: snapshots, scenario runner and CLI.
"""
