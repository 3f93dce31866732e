"""Benchmark prefix completion strategies over synthetic page slugs."""

import bisect
import gc
import json
import random
import time
import tracemalloc
from pathlib import Path
from typing import Any, Callable

import matplotlib.pyplot as plt
import psutil

from src.custom_data_structures.RadixTree.RadixTree import RadixTree

RESULTS_DIR = (
    Path(__file__).parent.parent / "static" / "benchmarks" / "prefix_search"
)
DATA_SIZES = [100, 1000, 10000, 50000]
QUERIES_PER_RUN = 2000
SEED = 1234

WORDS = [
    "api", "guide", "getting", "started", "install", "config", "server",
    "client", "search", "index", "page", "release", "notes", "faq", "setup",
    "deploy", "testing", "design", "overview", "roadmap", "tree", "radix",
]

Strategy = Callable[[str], set[str]]


def generate_slugs(count: int, rng: random.Random) -> list[str]:
    """Build `count` distinct hyphen-delimited slugs."""
    slugs: set[str] = set()
    while len(slugs) < count:
        words = rng.sample(WORDS, rng.randint(1, 4))
        slugs.add("-".join(words) + f"-{rng.randint(0, count)}")
    return sorted(slugs)


def generate_queries(slugs: list[str], rng: random.Random) -> list[str]:
    """Take random leading parts of the corpus, plus a few misses."""
    queries = []
    for _ in range(QUERIES_PER_RUN):
        slug = rng.choice(slugs)
        queries.append(slug[: rng.randint(1, len(slug))])
    queries.extend(["zzz", "nothing-here", "q"])
    return queries


def build_radix(slugs: list[str]) -> Strategy:
    tree = RadixTree()
    for slug in slugs:
        tree.insert(slug)
    return tree.search


def build_linear(slugs: list[str]) -> Strategy:
    corpus = list(slugs)

    def search(query: str) -> set[str]:
        return {slug for slug in corpus if slug.startswith(query)}

    return search


def build_bisect(slugs: list[str]) -> Strategy:
    corpus = sorted(slugs)

    def search(query: str) -> set[str]:
        results = set()
        index = bisect.bisect_left(corpus, query)
        while index < len(corpus) and corpus[index].startswith(query):
            results.add(corpus[index])
            index += 1
        return results

    return search


STRATEGIES: dict[str, Callable[[list[str]], Strategy]] = {
    "Radix Tree": build_radix,
    "Linear Scan": build_linear,
    "Sorted Bisect": build_bisect,
}


def run_strategy(
    builder: Callable[[list[str]], Strategy],
    slugs: list[str],
    queries: list[str],
) -> dict[str, float]:
    """Measure build cost, memory and average query time of a strategy.

    Returns:
        dict[str, float]: Timing in milliseconds, memory in bytes.

    """
    process = psutil.Process()
    gc.collect()
    rss_before = process.memory_info().rss

    tracemalloc.start()
    start = time.perf_counter()
    search = builder(slugs)
    build_ms = (time.perf_counter() - start) * 1000
    _, peak_memory = tracemalloc.get_traced_memory()
    tracemalloc.stop()

    start = time.perf_counter()
    for query in queries:
        search(query)
    query_ms = (time.perf_counter() - start) * 1000 / len(queries)

    return {
        "build_time": build_ms,
        "average_query_time": query_ms,
        "peak_traced_memory": float(peak_memory),
        "rss_delta": float(process.memory_info().rss - rss_before),
    }


def plot_results(results: dict[str, dict[str, dict[str, float]]]) -> Path:
    """Plot the average query time per corpus size as grouped bars."""
    names = list(STRATEGIES)
    sizes = [str(size) for size in DATA_SIZES]
    width = 0.8 / len(names)

    plt.figure(figsize=(9, 5))
    for offset, name in enumerate(names):
        x = [i + offset * width for i in range(len(sizes))]
        y = [results[size][name]["average_query_time"] for size in sizes]
        plt.bar(x, y, width=width, label=name)

    plt.xticks(
        [i + width * (len(names) - 1) / 2 for i in range(len(sizes))],
        sizes,
    )
    plt.xlabel("Pages in corpus")
    plt.ylabel("Average Query Time (ms)")
    plt.yscale("log")
    plt.title("Prefix Completion Time per Query")
    plt.legend()
    plt.tight_layout()

    graph_path = RESULTS_DIR / "benchmark_prefix_search.png"
    plt.savefig(graph_path)
    plt.close("all")
    return graph_path


def main() -> None:
    """Run every strategy on every corpus size and store the results."""
    rng = random.Random(SEED)
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)

    results: dict[str, dict[str, dict[str, float]]] = {}
    for size in DATA_SIZES:
        slugs = generate_slugs(size, rng)
        queries = generate_queries(slugs, rng)
        results[str(size)] = {}

        print(f"\n--- Corpus of {size} pages ---")
        for name, builder in STRATEGIES.items():
            metrics = run_strategy(builder, slugs, queries)
            results[str(size)][name] = metrics
            print(
                f"{name}: build {metrics['build_time']:.2f} ms, "
                f"query {metrics['average_query_time']:.4f} ms, "
                f"peak memory {metrics['peak_traced_memory'] / 1024:.1f} KiB",
            )

    graph_path = plot_results(results)
    print(f"\nGraph saved to {graph_path}")

    results_json_path = RESULTS_DIR / "results.json"
    summary: dict[str, Any] = {"seed": SEED, "results": results}
    with open(results_json_path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=4)
    print(f"Results saved to {results_json_path}")


if __name__ == "__main__":
    main()
