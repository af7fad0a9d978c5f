"""Workspace preparation — example manifests, local package copies, and watchers.

Provides EnvironmentPreparer for wiring packages/<name> into an example's
node_modules, and PackageWatcher for keeping those copies in sync.
"""
