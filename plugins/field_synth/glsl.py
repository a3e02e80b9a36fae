"""
GLSL Shader Assembly

Turns a pair of field trees (previous and current generation) into the
two source texts handed to a renderer: a fixed vertex stage and a
fragment stage that embeds both trees and cross-fades them by the
``u_fade`` uniform.

Also holds the dependency-extraction pass used to validate assembled
source without a GPU: every generated name must be defined exactly
once, before its first call.
"""

import re

PRELUDE = """\
#define M_PI 3.1415926535897932384626433832795

float mirror(float v) { float c = mod(abs(v), 2.0); return c <= 1.0 ? c : 2.0 - c; }
vec2 mirror(vec2 v) { return vec2(mirror(v.x), mirror(v.y)); }
vec3 mirror(vec3 v) { return vec3(mirror(v.x), mirror(v.y), mirror(v.z)); }
"""

VERTEX_SOURCE = """\
attribute vec2 a_point;
varying vec2 v_point;
uniform float u_ratio;
void main() {
    v_point = (u_ratio > 1.0
        ? vec2(a_point.x * u_ratio, a_point.y)
        : vec2(a_point.x, a_point.y / u_ratio)) * 0.5 + 0.5;
    gl_Position = vec4(a_point, 0, 1);
}
"""

# Seeded layer weight: color *= (1 - SEED_TINT) + SEED_TINT * seed_layer(p)
SEED_TINT = 0.25

# One ring of the seeded layer. #1, #2 and #3 expand to a float, vec2 or
# vec3 read from consecutive u_seed entries, wrapping around the array.
SEED_RING = "mirror(#3 * distance(point, #2 * 2.0 - 1.0) * {frequency} + #3)"
SEED_RING_FREQUENCIES = (5.0, 10.0, 20.0)
SEEDS_PER_RING = 8

_PLACEHOLDER_RE = re.compile(r"#([123])")

_FUNCTION_RE = re.compile(r"^(float|vec2|vec3|vec4|void)\s+(\w+)\s*\([^)]*\)\s*\{", re.M)
_CALL_RE = re.compile(r"\b([A-Za-z]\w*_\d+)\s*\(")


class DefinitionAssemblyError(RuntimeError):
    """Assembled shader source failed to compile or validate."""

    def __init__(self, message, source=""):
        super().__init__(message)
        self.source = source


class SeedCursor:
    """Hands out seed indices in order, wrapping at ``count``."""

    def __init__(self, count):
        if count < 1:
            raise ValueError(f"Seed array must not be empty: {count}")
        self.count = count
        self.position = 0

    def take(self, n):
        indices = [(self.position + i) % self.count for i in range(n)]
        self.position += n
        return indices


def expand_seed_placeholders(template, cursor):
    """Replace every #1/#2/#3 in ``template`` by u_seed reads, in text order."""
    def substitute(match):
        names = [f"u_seed[{i}]" for i in cursor.take(int(match.group(1)))]
        if len(names) == 1:
            return names[0]
        return f"vec{len(names)}({', '.join(names)})"
    return _PLACEHOLDER_RE.sub(substitute, template)


def seed_ring_count(seed_count):
    """Enough rings to read every seed at least once."""
    return max(1, -(-seed_count // SEEDS_PER_RING))


def seed_ring_frequency(index):
    return SEED_RING_FREQUENCIES[index % len(SEED_RING_FREQUENCIES)]


def seed_layer_source(seed_count):
    """GLSL ``vec3 seed_layer(vec2 point)``: average of seed-driven rings."""
    cursor = SeedCursor(seed_count)
    rings = seed_ring_count(seed_count)
    lines = []
    for k in range(rings):
        ring = SEED_RING.format(frequency=f"{seed_ring_frequency(k):.1f}")
        lines.append(f"    vec3 r{k} = {expand_seed_placeholders(ring, cursor)};")
    total = " + ".join(f"r{k}" for k in range(rings))
    return ("vec3 seed_layer(vec2 point) {\n" + "\n".join(lines) +
            f"\n    return ({total}) / {float(rings):.1f};\n}}\n")


def color_expression(node, point="v_point"):
    """GLSL expression turning a node's output into a vec3."""
    call = f"{node.reference}({point})"
    if node.dimension == 1:
        return f"vec3({call})"
    if node.dimension == 2:
        return f"vec3({call}, 0.5)"
    return call


def fragment_source(previous, current, seed_count=0):
    """Fragment stage cross-fading ``previous`` into ``current``."""
    uniforms = ["uniform float u_fade;"]
    tint = ""
    layer = ""
    if seed_count:
        uniforms.append(f"uniform float u_seed[{seed_count}];")
        layer = seed_layer_source(seed_count)
        tint = (f"    color *= {1.0 - SEED_TINT:.2f} + {SEED_TINT:.2f} * "
                f"seed_layer(v_point);\n")
    header = "precision highp float;\nvarying vec2 v_point;\n" + "\n".join(uniforms) + "\n"
    main = (
        "void main() {\n"
        f"    vec3 color = mix({color_expression(previous)}, "
        f"{color_expression(current)}, u_fade);\n"
        f"{tint}"
        "    gl_FragColor = vec4(color, 1.0);\n"
        "}\n"
    )
    return "\n".join([header, PRELUDE, layer, previous.definition, current.definition, main])


class ShaderProgram:
    """The two source texts of one generation plus the trees they embed."""

    def __init__(self, previous, current, seed_count=0):
        self.previous = previous
        self.current = current
        self.seed_count = seed_count
        self.vertex_source = VERTEX_SOURCE
        self.fragment_source = fragment_source(previous, current, seed_count)

    @property
    def entry_points(self):
        return (self.previous.reference, self.current.reference)


def defined_functions(source):
    """Map of function name -> return type, in definition order."""
    return {m.group(2): m.group(1) for m in _FUNCTION_RE.finditer(source)}


def _function_bodies(source):
    matches = list(_FUNCTION_RE.finditer(source))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(source)
        yield match.group(2), source[match.end():end]


def unresolved_references(source):
    """Generated names called before (or without) being defined."""
    defined = set()
    unresolved = set()
    for name, body in _function_bodies(source):
        for ref in _CALL_RE.findall(body):
            if ref not in defined:
                unresolved.add(ref)
        defined.add(name)
    # Calls outside any function body (none expected)
    first = _FUNCTION_RE.search(source)
    if first:
        unresolved.update(ref for ref in _CALL_RE.findall(source[:first.start()]))
    return unresolved


def duplicate_definitions(source):
    seen = set()
    duplicates = set()
    for match in _FUNCTION_RE.finditer(source):
        name = match.group(2)
        if name in seen and name not in ("mirror", "main"):
            duplicates.add(name)
        seen.add(name)
    return duplicates


def check_source(source):
    """Raise DefinitionAssemblyError if the source does not link."""
    unresolved = unresolved_references(source)
    if unresolved:
        raise DefinitionAssemblyError(
            f"Unresolved references: {', '.join(sorted(unresolved))}", source)
    duplicates = duplicate_definitions(source)
    if duplicates:
        raise DefinitionAssemblyError(
            f"Duplicate definitions: {', '.join(sorted(duplicates))}", source)
