from typing import Dict


def init_metrics() -> Dict[str, int | float | bool]:
    return {
        'rooms_created': 0,
        'edges_created': 0,
        'items_placed': 0,
        'puzzles_placed': 0,
        'hidden_flags': 0,
        'barriers_placed': 0,
        'traps_placed': 0,
        'treasure_distance': 0,
        'treasure_attempts': 0,
        'repairs_performed': 0,
        'path_length': 0,
        'runtime_ms': 0.0,
    }
