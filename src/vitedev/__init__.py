"""vitedev - development tooling for the Vite integration monorepo.

Two independent utilities:
  - workspace/: prepares an example app against the local packages/ tree
    and keeps node_modules copies in sync while a dev command runs.
  - html.py: compiles a static index.html into a render function at build time.

Package entry point. Exports the version string only; functional modules
are imported lazily by main.py.
"""

__version__ = "0.1.0"
