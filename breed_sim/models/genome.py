"""Genome model for breed_sim."""

import uuid
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import ValidationError
from .trait import Allele, Chromosome, Gene, Mutation, TraitExpression


DEFAULT_MUTATION_RATE = 0.02  # Per gene, per breeding
DEFAULT_REACTIVATION_RATE = 0.05  # Chance a gene inactive in both parents resurfaces
BENEFICIAL_MUTATION_CHANCE = 0.7
MIN_VIABLE_FITNESS = 0.1


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _short_id(rng: Optional[np.random.Generator] = None) -> str:
    if rng is None:
        return uuid.uuid4().hex[:8]
    return f"{int(rng.integers(0, 2**32)):08x}"


class Genome:
    """A creature's full hereditary record: chromosomes, mutations, lineage and scores."""

    def __init__(
        self,
        species_id: str,
        chromosomes: List[Chromosome],
        mutations: Optional[List[Mutation]] = None,
        generation: int = 1,
        fitness: float = 1.0,
        parent_ids: Sequence[str] = (),
        diversity: Optional[float] = None,
        is_viable: bool = True,
        genome_id: Optional[str] = None,
        lineage_id: Optional[str] = None
    ):
        """
        Initialize a genome.

        Args:
            species_id: Species this genome belongs to
            chromosomes: Chromosomes owned by this genome
            mutations: Mutations carried by this genome (inherited and new)
            generation: 1 for founders, max(parent generations) + 1 for offspring
            fitness: Health/quality score (0.0 to 1.0)
            parent_ids: Zero or two parent genome ids
            diversity: Diversity index (0.0 to 1.0); computed from the genes if None
            is_viable: Whether the genome can produce a living creature
            genome_id: Optional id; a random short id is generated if None
            lineage_id: Optional breeding-line id; defaults to the genome id
        """
        self.genome_id = genome_id or _short_id()
        self.species_id = species_id
        self.chromosomes = list(chromosomes)
        self.mutations: List[Mutation] = list(mutations or [])
        self.generation = generation
        self.fitness = fitness
        self.parent_ids: Tuple[str, ...] = tuple(parent_ids)
        self.is_viable = is_viable
        self.lineage_id = lineage_id or self.genome_id
        self._trait_expressions: Optional[List[TraitExpression]] = None

        if generation < 1:
            raise ValidationError(f"generation must be >= 1, got {generation}")
        if len(self.parent_ids) > 2:
            raise ValidationError(f"A genome has at most two parents, got {len(self.parent_ids)}")
        if not self.parent_ids and generation != 1:
            raise ValidationError("Founders (no parents) must be generation 1")
        if self.parent_ids and generation == 1:
            raise ValidationError("Bred genomes must be generation 2 or later")
        if len(self.parent_ids) == 2 and self.parent_ids[0] == self.parent_ids[1]:
            raise ValidationError("Genome cannot have the same parent twice")
        if not (0.0 <= fitness <= 1.0):
            raise ValidationError(f"fitness must be between 0.0 and 1.0, got {fitness}")

        seen = set()
        for gene in self.genes:
            if gene.gene_id in seen:
                raise ValidationError(f"Duplicate gene_id in genome: {gene.gene_id}")
            seen.add(gene.gene_id)

        self.diversity = self.calculate_diversity(self.genes) if diversity is None else diversity
        if not (0.0 <= self.diversity <= 1.0):
            raise ValidationError(f"diversity must be between 0.0 and 1.0, got {self.diversity}")

    @property
    def genes(self) -> List[Gene]:
        """All genes, in chromosome order."""
        return [gene for chromosome in self.chromosomes for gene in chromosome.genes]

    @property
    def is_founder(self) -> bool:
        return not self.parent_ids

    def get_gene(self, gene_id: str) -> Optional[Gene]:
        for chromosome in self.chromosomes:
            gene = chromosome.get_gene(gene_id)
            if gene is not None:
                return gene
        return None

    @property
    def trait_expressions(self) -> List[TraitExpression]:
        """Cached expressions of all active genes."""
        if self._trait_expressions is None:
            self._trait_expressions = self.express()
        return self._trait_expressions

    def express(self) -> List[TraitExpression]:
        """Compute trait expressions for active genes (inactive genes contribute nothing)."""
        return [TraitExpression.from_gene(gene) for gene in self.genes if gene.is_active]

    def expression_map(self) -> Dict[str, float]:
        """Expressed value keyed by lower-cased gene id."""
        return {expr.trait_id.lower(): expr.value for expr in self.trait_expressions}

    def has_mutation(self, mutation_id: str) -> bool:
        return any(m.mutation_id == mutation_id for m in self.mutations)

    def genetic_purity(self) -> float:
        """
        Purity of this genetic line: fewer harmful mutations means higher purity.

        Returns:
            1.0 with no mutations, otherwise ``1 - harmful / (total + 5)`` clamped to [0, 1]
        """
        if not self.mutations:
            return 1.0
        harmful = sum(1 for m in self.mutations if not m.is_beneficial)
        return _clamp01(1.0 - harmful / (len(self.mutations) + 5.0))

    def trait_summary(self, max_traits: int = 5) -> str:
        """Comma-separated names of the strongest traits (expressed above 0.7)."""
        significant = sorted(
            (e for e in self.trait_expressions if e.value > 0.7),
            key=lambda e: e.value,
            reverse=True
        )
        return ", ".join(e.name for e in significant[:max_traits])

    @staticmethod
    def calculate_diversity(genes: Sequence[Gene]) -> float:
        """
        Diversity index: proportion of heterozygous genes.

        Args:
            genes: Genes to inspect

        Returns:
            Diversity (0.0 to 1.0); 0.0 for an empty gene list
        """
        if not genes:
            return 0.0
        heterozygous = sum(1 for gene in genes if gene.is_heterozygous())
        return heterozygous / len(genes)

    @staticmethod
    def compatibility(a: 'Genome', b: 'Genome') -> float:
        """
        Breeding compatibility between two genomes.

        Rewards two healthy parents and penalizes a large diversity gap.
        Mismatched species always score exactly 0.0.

        Args:
            a: First genome
            b: Second genome

        Returns:
            Compatibility (0.0 to 1.0)
        """
        if a.species_id != b.species_id:
            return 0.0
        avg_fitness = (a.fitness + b.fitness) / 2
        return _clamp01(avg_fitness - 0.5 * abs(a.diversity - b.diversity))

    @staticmethod
    def _inherit_gene(
        gene1: Gene,
        gene2: Gene,
        rng: np.random.Generator,
        reactivation_rate: float
    ) -> Gene:
        """Combine one gamete allele from each parent copy of a gene."""
        gamete1 = gene1.alleles()[int(rng.integers(2))]
        gamete2 = gene2.alleles()[int(rng.integers(2))]
        is_active = gene1.is_active or gene2.is_active
        if not is_active:
            # Recessive traits can resurface in later generations
            is_active = bool(rng.random() < reactivation_rate)
        return Gene.from_alleles(
            gene1.gene_id, gamete1, gamete2,
            is_active=is_active,
            trait_type=gene1.trait_type
        )

    @staticmethod
    def _create_mutation(gene: Gene, generation: int, rng: np.random.Generator) -> Mutation:
        is_beneficial = bool(rng.random() < BENEFICIAL_MUTATION_CHANCE)
        label = "Enhancement" if is_beneficial else "Degradation"
        return Mutation(
            mutation_id=f"mut-{_short_id(rng)}",
            name=f"{gene.gene_id.replace('_', ' ').title()} {label}",
            target_gene_id=gene.gene_id,
            effect_strength=float(rng.uniform(0.1, 0.3)),
            is_beneficial=is_beneficial,
            rarity=float(rng.uniform(0.5, 1.0)),
            generation=generation
        )

    @classmethod
    def create_offspring(
        cls,
        parent1: 'Genome',
        parent2: 'Genome',
        rng: np.random.Generator,
        mutation_rate: float = DEFAULT_MUTATION_RATE,
        reactivation_rate: float = DEFAULT_REACTIVATION_RATE,
        genome_id: Optional[str] = None
    ) -> 'Genome':
        """
        Create an offspring genome from two parents.

        Parents are only read; the offspring is always a new Genome.

        Args:
            parent1: First parent genome
            parent2: Second parent genome
            rng: Random number generator owned by the caller's session
            mutation_rate: Per-gene mutation probability
            reactivation_rate: Chance that a gene inactive in both parents resurfaces
            genome_id: Optional id for the offspring

        Returns:
            New Genome instance

        Raises:
            ValidationError: If the parents belong to different species
        """
        if parent1.species_id != parent2.species_id:
            raise ValidationError(
                f"Cannot breed across species: {parent1.species_id} x {parent2.species_id}"
            )
        if not (0.0 <= mutation_rate <= 1.0):
            raise ValidationError(f"mutation_rate must be between 0.0 and 1.0, got {mutation_rate}")

        generation = max(parent1.generation, parent2.generation) + 1
        offspring_id = genome_id or _short_id(rng)

        new_mutations: List[Mutation] = []
        chromosomes: List[Chromosome] = []
        for index in range(max(len(parent1.chromosomes), len(parent2.chromosomes))):
            c1 = parent1.chromosomes[index] if index < len(parent1.chromosomes) else None
            c2 = parent2.chromosomes[index] if index < len(parent2.chromosomes) else None

            # Gene order: first parent's layout, then genes only the second parent carries
            gene_ids: List[str] = []
            for chromosome in (c1, c2):
                if chromosome is None:
                    continue
                for gene in chromosome.genes:
                    if gene.gene_id not in gene_ids:
                        gene_ids.append(gene.gene_id)

            genes: List[Gene] = []
            for gene_id in gene_ids:
                g1 = c1.get_gene(gene_id) if c1 is not None else None
                g2 = c2.get_gene(gene_id) if c2 is not None else None
                if g1 is not None and g2 is not None:
                    gene = cls._inherit_gene(g1, g2, rng, reactivation_rate)
                else:
                    # Only one parent carries this gene
                    gene = g1 if g1 is not None else g2

                if rng.random() < mutation_rate:
                    mutation = cls._create_mutation(gene, generation, rng)
                    gene = gene.with_mutation(mutation)
                    new_mutations.append(mutation)

                genes.append(gene)

            is_sex = any(c.is_sex_chromosome for c in (c1, c2) if c is not None)
            chromosomes.append(Chromosome(genes=genes, is_sex_chromosome=is_sex))

        # Mutations are permanent: carry both parents' history plus the new ones
        mutations: List[Mutation] = []
        seen = set()
        for mutation in [*parent1.mutations, *parent2.mutations, *new_mutations]:
            if mutation.mutation_id not in seen:
                seen.add(mutation.mutation_id)
                mutations.append(mutation)

        offspring = cls(
            species_id=parent1.species_id,
            chromosomes=chromosomes,
            mutations=mutations,
            generation=generation,
            fitness=0.0,
            parent_ids=(parent1.genome_id, parent2.genome_id),
            genome_id=offspring_id,
            lineage_id=f"{parent1.lineage_id[:8]}x{parent2.lineage_id[:8]}"
        )

        avg_parent_fitness = (parent1.fitness + parent2.fitness) / 2
        active_values = [e.value for e in offspring.trait_expressions]
        expression_quality = float(np.mean(active_values)) if active_values else avg_parent_fitness
        offspring.fitness = _clamp01(
            (avg_parent_fitness + expression_quality) / 2 * offspring.genetic_purity()
        )
        offspring.is_viable = offspring.fitness >= MIN_VIABLE_FITNESS
        return offspring

    @classmethod
    def from_config(cls, config: Dict) -> 'Genome':
        """
        Create a founder Genome from a configuration dictionary.

        Args:
            config: Dictionary with ``species_id``, ``chromosomes`` (each a dict
                with ``genes`` and optional ``is_sex_chromosome``) and optional
                ``fitness``, ``genome_id``

        Returns:
            Genome instance
        """
        chromosomes = [
            Chromosome(
                genes=[Gene.from_config(g) for g in c.get('genes', [])],
                is_sex_chromosome=c.get('is_sex_chromosome', False)
            )
            for c in config.get('chromosomes', [])
        ]
        return cls(
            species_id=config['species_id'],
            chromosomes=chromosomes,
            fitness=config.get('fitness', 1.0),
            genome_id=config.get('genome_id')
        )

    def __repr__(self) -> str:
        return (
            f"Genome(id={self.genome_id!r}, species={self.species_id!r}, "
            f"generation={self.generation}, genes={len(self.genes)}, "
            f"fitness={self.fitness:.2f}, diversity={self.diversity:.2f})"
        )


def make_gene(gene_id: str, value: float, dominance: float = 0.5, **kwargs) -> Gene:
    """Convenience constructor for a homozygous gene."""
    allele = Allele(value=value, dominance=dominance)
    return Gene(gene_id=gene_id, dominant=allele, recessive=allele, **kwargs)
