"""GLSL programs for the simulation and composite passes."""
from .life_rules import EdgePolicy, Variant
from ..utils.config import Config

GLSL_VERSION = "#version 330 core"

# Fullscreen triangle, no vertex buffers needed
FULLSCREEN_VERTEX_SHADER = GLSL_VERSION + r'''
const vec2 POSITIONS[3] = vec2[3](
    vec2(-1.0, -1.0),
    vec2(3.0, -1.0),
    vec2(-1.0, 3.0)
);

void main() {
    gl_Position = vec4(POSITIONS[gl_VertexID], 0.0, 1.0);
}
'''

# Simulation pass. Rendered into the write buffer's framebuffer, one
# fragment per cell; gl_FragCoord.y is the row index of the CellGrid.
LIFE_FRAGMENT_SHADER = r'''
uniform sampler2D cells;

layout(std140) uniform LifeMaterial {
    vec4 info;          // cursor x, cursor y, frame bits, draw radius
    vec4 draw_color;
    vec4 params;        // x: evolve
};

out vec4 out_cell;

bool fetch_cell(ivec2 p, ivec2 size, out vec4 cell) {
#if EDGE_POLICY == 0
    if (any(lessThan(p, ivec2(0))) || any(greaterThanEqual(p, size))) {
        cell = vec4(0.0);
        return false;
    }
#elif EDGE_POLICY == 1
    p = (p + size) % size;
#else
    p = clamp(p, ivec2(0), size - 1);
#endif
    cell = texelFetch(cells, p, 0);
    return true;
}

bool is_alive(vec4 cell) {
    return cell[ALIVE_CHANNEL] > THRESHOLD;
}

uint cell_hash(uvec2 p, uint frame) {
    uint h = p.x * 374761393u + p.y * 668265263u + frame * 2246822519u;
    h = (h ^ (h >> 13u)) * 1274126177u;
    return h ^ (h >> 16u);
}

void main() {
    ivec2 size = textureSize(cells, 0);
    ivec2 p = ivec2(gl_FragCoord.xy);
    vec4 self_cell = texelFetch(cells, p, 0);
    bool alive = is_alive(self_cell);
    vec4 result = self_cell;

    if (params.x > 0.5) {
        int count = 0;
        vec3 parents[8];
        for (int dy = -1; dy <= 1; dy++) {
            for (int dx = -1; dx <= 1; dx++) {
                if (dx == 0 && dy == 0) continue;
                vec4 neighbor;
                if (fetch_cell(p + ivec2(dx, dy), size, neighbor) && is_alive(neighbor)) {
                    parents[count] = neighbor.rgb;
                    count++;
                }
            }
        }

        bool next_alive = (count == 3) || (count == 2 && alive);
        result = vec4(0.0);
        if (next_alive) {
#if EXTENDED
            uint frame = floatBitsToUint(info.z);
            vec3 color = alive ? self_cell.rgb : parents[int(cell_hash(uvec2(p), frame) % 3u)];
            result = vec4(color, 1.0);
#else
            result = vec4(1.0);
#endif
        }
    }

    // Brush overrides the rule
    if (distance(gl_FragCoord.xy, info.xy) < info.w) {
#if EXTENDED
        result = vec4(draw_color.rgb, 1.0);
#else
        result = vec4(1.0);
#endif
    }

    out_cell = result;
}
'''

# Composite pass. Maps window fragments through the camera into the
# CellGrid and shades them; mirrors life_engine.composite.
COMPOSITE_FRAGMENT_SHADER = r'''
uniform sampler2D cells;
uniform vec2 viewport;          // logical pixels
uniform float pixel_ratio;
uniform vec2 camera_position;
uniform float camera_scale;
uniform vec4 tint;
uniform float tint_strength;
uniform vec2 cursor;            // simulation space
uniform float cursor_radius;    // 0 hides the ring
uniform vec4 dead_color;
uniform vec4 alive_color;
uniform vec4 border_color;
uniform vec4 cursor_color;

out vec4 out_color;

vec3 shade(vec4 cell) {
#if EXTENDED
    vec3 live = mix(cell.rgb, tint.rgb, tint_strength);
    return mix(dead_color.rgb, live, cell.a);
#else
    return mix(dead_color.rgb, alive_color.rgb, cell.r);
#endif
}

void main() {
    ivec2 size = textureSize(cells, 0);
    // window pixel, origin top-left, y down
    vec2 pixel = vec2(gl_FragCoord.x, viewport.y * pixel_ratio - gl_FragCoord.y) / pixel_ratio;
    vec2 world = vec2(pixel.x - viewport.x * 0.5, -(pixel.y - viewport.y * 0.5)) * camera_scale
                 + camera_position;
    vec2 sim = vec2(world.x, -world.y) + vec2(size) * 0.5;

    ivec2 texel = ivec2(floor(sim));
    vec3 color = border_color.rgb;
    if (all(greaterThanEqual(texel, ivec2(0))) && all(lessThan(texel, size))) {
        color = shade(texelFetch(cells, texel, 0));
    }

    if (cursor_radius > 0.0 && abs(distance(sim, cursor) - cursor_radius) <= 0.5 * camera_scale) {
        color = cursor_color.rgb;
    }

    out_color = vec4(color, 1.0);
}
'''


def _defines(variant: Variant, **extra) -> str:
    variant = Variant(variant)
    lines = [
        GLSL_VERSION,
        f"#define EXTENDED {1 if variant is Variant.EXTENDED else 0}",
        f"#define ALIVE_CHANNEL {variant.alive_channel}",
    ]
    lines += [f"#define {name} {value}" for name, value in extra.items()]
    return "\n".join(lines) + "\n"


def build_simulation_source(variant: Variant, edge_policy: EdgePolicy,
                            threshold: int = Config.LIVENESS_THRESHOLD) -> str:
    """Simulation fragment shader specialised for a cell layout and edge policy."""
    return _defines(variant,
                    EDGE_POLICY=int(EdgePolicy(edge_policy)),
                    THRESHOLD=f"{(threshold + 0.5) / 255.0:.6f}") + LIFE_FRAGMENT_SHADER


def build_composite_source(variant: Variant) -> str:
    """Composite fragment shader specialised for a cell layout."""
    return _defines(variant) + COMPOSITE_FRAGMENT_SHADER
