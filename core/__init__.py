"""core/ -- Configuration and the shared error taxonomy.

Layer rule: core/ is the kernel. It imports nothing from the other packages.
"""
