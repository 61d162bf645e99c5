# STUMPY
# Copyright 2019 TD Ameritrade. Released under the terms of the 3-Clause BSD license.
# STUMPY is a trademark of TD Ameritrade IP Company, Inc. All rights reserved.

import ast
import importlib
import pathlib

import numba


def get_njit_funcs():
    """
    Find every function in this package that is decorated with `njit`

    Parameters
    ----------
    None

    Returns
    -------
    out : list
        A list of (`module_name`, `func_name`) pairs
    """
    pkg_dir = pathlib.Path(__file__).parent

    njit_funcs = []
    for filepath in sorted(pkg_dir.glob("*.py")):
        if filepath.stem == "__init__":
            continue

        with open(filepath, encoding="utf8") as f:
            module = ast.parse(f.read())

        for node in module.body:
            if not isinstance(node, ast.FunctionDef):
                continue
            for decorator in node.decorator_list:
                decorator_name = None
                if isinstance(decorator, ast.Name):
                    # Bare decorator
                    decorator_name = decorator.id
                elif isinstance(decorator, ast.Call) and isinstance(
                    decorator.func, ast.Name
                ):
                    decorator_name = decorator.func.id

                if decorator_name == "njit":
                    njit_funcs.append((filepath.stem, node.name))

    return njit_funcs


def _recompile():
    """
    Recompile all njit functions so that changes to their `fastmath` flags
    take effect

    Parameters
    ----------
    None

    Returns
    -------
    None
    """
    for module_name, func_name in get_njit_funcs():
        module = importlib.import_module(f".{module_name}", package="mpcore")
        func = getattr(module, func_name)
        try:
            func.recompile()
        except AttributeError as e:
            if (
                numba.config.DISABLE_JIT
                and str(e) == "'function' object has no attribute 'recompile'"
            ):
                pass
            else:  # pragma: no cover
                raise

    return
