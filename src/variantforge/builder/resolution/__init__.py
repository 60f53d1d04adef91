"""
The `resolution` sub-package decides what a build sees and when it must be
rebuilt: architecture gating, image feature negotiation, variant sensitivity
and the merged default settings of a variant.
"""
