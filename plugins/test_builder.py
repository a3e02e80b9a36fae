#!/usr/bin/env python3
"""
Tests for the tree builder and shader assembly.

Verifies:
1. Zero budget yields a single constant leaf
2. Reference names are unique across many trees from one context
3. Dimension consistency of every node in generated trees
4. Termination for all dimensions/budgets, determinism under seeding
5. Structural composers appear and definitions link (dependency extraction)
6. Active combinator configuration
7. Trees from the one-shot helper can share a program
"""

import re
import numpy as np
from field_synth.builder import TreeBuilder, random_texture
from field_synth.combinators import COMBINATORS, Combinator, MixPower
from field_synth.composers import Blend, Displace
from field_synth.generator import BuildContext, Constant, glsl_type
from field_synth.glsl import (
    DefinitionAssemblyError, ShaderProgram, check_source, defined_functions,
    unresolved_references,
)
from field_synth.transformers import Transformer

_VEC3_LITERAL = re.compile(r"vec3\(\d\.\d{6}, \d\.\d{6}, \d\.\d{6}\)")


def test_zero_budget_leaf():
    """random_texture(3, 0) is one constant with one vec3 literal."""
    print("Testing zero-budget leaf...")
    tree = random_texture(3, 0, BuildContext.from_seed(0))
    assert isinstance(tree, Constant), f"Expected a constant leaf, got {tree!r}"
    assert tree.children == ()
    assert len(_VEC3_LITERAL.findall(tree.definition)) == 1, tree.definition
    assert defined_functions(tree.definition) == {tree.reference: "vec3"}
    assert not unresolved_references(tree.definition)
    assert "(p)" not in tree.definition, "Leaf must not call other fields"
    print("  ✓ Zero-budget leaf working correctly")


def test_unique_references():
    """All node ids across N trees from one context are distinct."""
    print("Testing reference uniqueness...")
    builder = TreeBuilder(BuildContext.from_seed(11))
    ids = []
    for dim in (1, 2, 3) * 10:
        tree = builder.random_texture(dim, 30)
        ids.extend(node.id for node in tree.walk())
    assert len(ids) == len(set(ids)), "Node ids must be pairwise distinct"
    print(f"  ✓ {len(ids)} unique node ids")


def test_dimension_consistency():
    """Declared dimension matches the GLSL return type; value children keep it."""
    print("Testing dimension consistency...")
    builder = TreeBuilder(BuildContext.from_seed(12),
                          combinators=list(COMBINATORS))
    for dim in (1, 2, 3):
        for _ in range(20):
            tree = builder.random_texture(dim, 40)
            assert tree.dimension == dim
            types = defined_functions(tree.definition)
            for node in tree.walk():
                assert types[node.reference] == glsl_type(node.dimension), node
                if isinstance(node, (Transformer, Combinator)):
                    assert all(c.dimension == node.dimension for c in node.children)
                elif isinstance(node, Displace):
                    assert node.value.dimension == node.dimension
                    assert node.point.dimension == 2
                elif isinstance(node, Blend):
                    assert node.a.dimension == node.b.dimension == node.dimension
                    assert node.alpha.dimension == 1
    print("  ✓ Dimension consistency working correctly")


def test_totality_and_evaluation():
    """Builds terminate for every dimension and budget, and evaluate in range."""
    print("Testing totality...")
    builder = TreeBuilder(BuildContext.from_seed(13))
    points = np.random.default_rng(0).uniform(-2.0, 2.0, size=(64, 2))
    for dim in (1, 2, 3):
        for complexity in (0, 0.5, 1, 2, 3.5, 7, 11, 25, 60):
            tree = builder.random_texture(dim, complexity)
            values = tree.evaluate(points)
            expected = (64,) if dim == 1 else (64, dim)
            assert values.shape == expected
            assert np.all(np.isfinite(values))
            assert values.min() >= -1e-9 and values.max() <= 1.0 + 1e-9, \
                "Fields built from [0, 1) literals stay in [0, 1]"
    print("  ✓ Totality working correctly")


def test_determinism_under_seeding():
    """Same seed, same bytes."""
    print("Testing determinism...")
    a = random_texture(3, 30, BuildContext.from_seed(99))
    b = random_texture(3, 30, BuildContext.from_seed(99))
    assert a.definition == b.definition, "Seeded builds must be byte-identical"
    c = random_texture(3, 30, BuildContext.from_seed(100))
    assert c.definition != a.definition
    print("  ✓ Determinism working correctly")


def test_structural_coverage():
    """100 builds of random_texture(1, 50): composers appear, every definition links."""
    print("Testing structural coverage...")
    builder = TreeBuilder(BuildContext.from_seed(21))
    structural = 0
    for _ in range(100):
        tree = builder.random_texture(1, 50)
        structural += sum(isinstance(n, (Displace, Blend)) for n in tree.walk())
        assert not unresolved_references(tree.definition), "Definition must link"
        check_source(tree.definition)
    assert structural > 0, "Expected at least one Displace or Blend"
    print(f"  ✓ {structural} structural composers across 100 trees")


def test_transform_chain_budget():
    """Transformers decrement the budget: below the structural gate only
    transformers, combinators and leaves appear."""
    print("Testing budget gates...")
    builder = TreeBuilder(BuildContext.from_seed(5), structural_band=1.0)
    for _ in range(30):
        tree = builder.random_texture(3, 10)
        assert not any(isinstance(n, (Displace, Blend)) for n in tree.walk())
    builder = TreeBuilder(BuildContext.from_seed(5), structural_band=0.0, transform_band=0.0)
    tree = builder.random_texture(3, 16)
    assert not any(isinstance(n, Transformer) for n in tree.walk())
    print("  ✓ Budget gates working correctly")


def test_active_combinators():
    """Only active combinators are used; bad configuration raises."""
    print("Testing active combinator set...")
    builder = TreeBuilder(BuildContext.from_seed(8), combinators=["mixPower"])
    for _ in range(10):
        tree = builder.random_texture(3, 20)
        combos = [n for n in tree.walk() if isinstance(n, Combinator)]
        assert all(isinstance(n, MixPower) for n in combos)

    for bad in (["mixN", "nope"], []):
        try:
            TreeBuilder(BuildContext.from_seed(8), combinators=bad)
        except ValueError:
            pass
        else:
            raise AssertionError(f"Combinators {bad} must raise ValueError")
    print("  ✓ Active combinator set working correctly")


def test_shader_program():
    """Assembled program embeds both trees and links; broken source is rejected."""
    print("Testing shader assembly...")
    builder = TreeBuilder(BuildContext.from_seed(31))
    previous = builder.random_texture(3, 20)
    current = builder.random_texture(3, 20)
    program = ShaderProgram(previous, current, seed_count=64)
    assert program.entry_points == (previous.reference, current.reference)
    assert previous.definition in program.fragment_source
    assert current.definition in program.fragment_source
    assert "uniform float u_seed[64];" in program.fragment_source
    assert "uniform float u_ratio;" in program.vertex_source
    check_source(program.fragment_source)

    broken = program.fragment_source.replace(current.definition, "")
    try:
        check_source(broken)
    except DefinitionAssemblyError as e:
        assert current.reference in str(e)
    else:
        raise AssertionError("Missing definition must be reported")

    doubled = previous.definition + previous.definition
    try:
        check_source(doubled)
    except DefinitionAssemblyError:
        pass
    else:
        raise AssertionError("Duplicate definition must be reported")
    print("  ✓ Shader assembly working correctly")


def test_helper_trees_share_program():
    """Two helper-built trees without a context get distinct ids and link together."""
    print("Testing helper id continuity...")
    a = random_texture(3, 20)
    b = random_texture(3, 20)
    ids_a = {node.id for node in a.walk()}
    ids_b = {node.id for node in b.walk()}
    assert not ids_a & ids_b, "Helper calls must not reuse node ids"
    check_source(ShaderProgram(a, b).fragment_source)
    print("  ✓ Helper id continuity working correctly")


if __name__ == "__main__":
    print("\n=== Testing Tree Builder ===\n")

    test_zero_budget_leaf()
    test_unique_references()
    test_dimension_consistency()
    test_totality_and_evaluation()
    test_determinism_under_seeding()
    test_structural_coverage()
    test_transform_chain_budget()
    test_active_combinators()
    test_shader_program()
    test_helper_trees_share_program()

    print("\n✓ All tests passed!\n")
