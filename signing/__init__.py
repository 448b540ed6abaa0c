"""
PDF signing editor.

Resolves heterogeneous signature/metadata coordinates into PDF points, plans
the draw operations for one signing action, stamps them onto a PDF snapshot
(pypdf + reportlab overlay merge) and keeps an undo history of snapshots.
"""
