"""
omicsnet.engine
===============

Computational primitives that act on a generated network.  The only engine
shipped today is the drug perturbation model in :mod:`.perturbation`: given
a baseline :class:`~omicsnet.network.PathwayData` and a
:class:`~omicsnet.taxonomy.DrugTreatment` it returns a new graph whose nodes
carry fold changes and whose links carry strength multipliers.

Effect sizes are sampled from fixed multiplier bands (see
``perturbation.UPREGULATED_FOLD`` and friends).  Named gene signatures always
win over the weighted random outcome, so a drug listed as upregulating
``BDNF`` reliably pushes every ``BDNF`` node in reach above 1.8×.
"""

from .perturbation import (  # noqa: F401
    PerturbationEngine,
    apply_perturbation,
    apply_perturbations,
    perturb_by_id,
)

__all__ = ["PerturbationEngine", "apply_perturbation", "apply_perturbations", "perturb_by_id"]
