from .adapter import UniswapAdapter, build_swap_params, find_pool

__all__ = ["UniswapAdapter", "build_swap_params", "find_pool"]
