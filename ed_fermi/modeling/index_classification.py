from collections import namedtuple
from ed_fermi.tools import validate_parameters, WrongLabelError, IndexNotFoundError
import logging

logger = logging.getLogger(__name__)

__all__ = ["LatticeSite", "IndexInfo", "IndexClassification", "DOWN", "UP"]

# Spin projections
DOWN, UP = 0, 1

LatticeSite = namedtuple("LatticeSite", ["label", "n_orbitals", "n_spins"])
LatticeSite.__new__.__defaults__ = (1, 2)
LatticeSite.__doc__ = "Label, number of orbitals and of spin projections of a site."

IndexInfo = namedtuple("IndexInfo", ["site", "orbital", "spin"])
IndexInfo.__doc__ = "Site label, orbital and spin of a ParticleIndex."


class IndexClassification:
    def __init__(self, sites):
        """
        Assign a ParticleIndex to every (site, orbital, spin) combination.

        Indices are given with the spin as the outermost loop, then the sites in
        the order they are provided, then the orbitals. For a single site with
        one orbital this means index 0 is spin down and index 1 spin up.

        Args:
            sites (list): LatticeSite objects, or (label, n_orbitals[, n_spins])
                tuples, or plain dicts with the same keys.
        """
        self.sites = []
        for site in sites:
            if isinstance(site, dict):
                site = LatticeSite(**site)
            elif not isinstance(site, LatticeSite):
                site = LatticeSite(*site)
            validate_parameters(site_label=site.label)
            if site.n_orbitals < 1 or site.n_spins < 1:
                raise WrongLabelError(f"Site {site.label} has no orbitals or spins")
            self.sites.append(site)
        labels = [site.label for site in self.sites]
        if len(set(labels)) != len(labels):
            raise WrongLabelError(f"Repeated site labels in {labels}")
        # Build the two directions of the map
        self._indices_to_info = []
        self._info_to_index = {}
        self._site_indices = {label: [] for label in labels}
        max_spins = max((site.n_spins for site in self.sites), default=0)
        for spin in range(max_spins):
            for site in self.sites:
                if spin >= site.n_spins:
                    continue
                for orbital in range(site.n_orbitals):
                    info = IndexInfo(site.label, orbital, spin)
                    index = len(self._indices_to_info)
                    self._indices_to_info.append(info)
                    self._info_to_index[info] = index
                    self._site_indices[site.label].append(index)
        self.index_size = len(self._indices_to_info)
        logger.info(f"INDEX SIZE: {self.index_size}")

    def find_index(self, site_label: str, orbital: int, spin: int) -> int:
        """ParticleIndex of a given site, orbital and spin."""
        info = IndexInfo(site_label, orbital, spin)
        if info not in self._info_to_index:
            raise IndexNotFoundError(f"No index for {info}")
        return self._info_to_index[info]

    def find_indices(self, site_label: str) -> list:
        """All the ParticleIndices which belong to a site."""
        if site_label not in self._site_indices:
            raise IndexNotFoundError(f"Unknown site label {site_label}")
        return list(self._site_indices[site_label])

    def get_info(self, index: int) -> IndexInfo:
        validate_parameters(index=index)
        if not 0 <= index < self.index_size:
            raise IndexNotFoundError(
                f"ParticleIndex {index} out of range [0, {self.index_size})"
            )
        return self._indices_to_info[index]

    def spin_indices(self, spin: int) -> list:
        """ParticleIndices with a given spin projection, in index order."""
        return [ii for ii, info in enumerate(self._indices_to_info) if info.spin == spin]

    def __len__(self):
        return self.index_size
