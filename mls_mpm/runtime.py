"""Taichi backend initialisation."""

from __future__ import annotations

import os

import taichi as ti

from .configuration import RuntimeConfig

_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}

_PRECISIONS = {
    "float32": ti.f32,
    "float64": ti.f64,
}


def init_taichi(runtime: RuntimeConfig | None = None, log_level: str = "error") -> None:
    """Initialise Taichi for the requested backend, falling back to the CPU if a GPU is unavailable.

    Must run before any solver is constructed since fields are allocated eagerly.
    """
    runtime = runtime or RuntimeConfig()
    os.environ.setdefault("TI_LOG_LEVEL", log_level)

    options = dict(
        default_fp=_PRECISIONS[runtime.precision],
        random_seed=runtime.random_seed,
        debug=runtime.debug,
    )
    if runtime.cpu_threads is not None:
        options["cpu_max_num_threads"] = runtime.cpu_threads

    if runtime.arch == "cpu":
        ti.init(arch=ti.cpu, **options)
        print("[Runtime] Using MPM solver (CPU backend)")
        return
    try:
        ti.init(arch=_ARCHS[runtime.arch], enable_fallback=False, **options)
        print(f"[Runtime] Using MPM solver ({runtime.arch} backend)")
    except RuntimeError as e:
        print(f"⚠ {runtime.arch} init failed: {e}, falling back to CPU")
        ti.init(arch=ti.cpu, **options)
