from mlmd_bench.sampling.popularity import CategoricalSampler, build_popularity_sampler

__all__ = [
    "CategoricalSampler",
    "build_popularity_sampler",
]
