"""CUDA kernels for the Life simulation and colour passes."""
import cupy as cp

KERNEL_NAMES = ('life_step', 'field_to_rgba')


# Simulation pass: one thread per cell, grid-stride loop
LIFE_STEP_KERNEL = r'''
__device__ unsigned int cell_hash(unsigned int x, unsigned int y, unsigned int frame) {
    unsigned int h = x * 374761393u + y * 668265263u + frame * 2246822519u;
    h = (h ^ (h >> 13)) * 1274126177u;
    return h ^ (h >> 16);
}

__device__ bool fetch_cell(const unsigned char* field, int x, int y,
                           const int width, const int height, const int channels,
                           const int edge_policy, int* index) {
    if (x < 0 || y < 0 || x >= width || y >= height) {
        if (edge_policy == 0) {          // dead border
            return false;
        } else if (edge_policy == 1) {   // wrap
            x = (x + width) % width;
            y = (y + height) % height;
        } else {                         // clamp
            x = min(max(x, 0), width - 1);
            y = min(max(y, 0), height - 1);
        }
    }
    *index = (y * width + x) * channels;
    return true;
}

extern "C" __global__
void life_step(const unsigned char* current, unsigned char* next,
               const int width, const int height, const int channels,
               const int edge_policy, const int threshold,
               const float cursor_x, const float cursor_y,
               const float frame_value, const float draw_radius,
               const unsigned char draw_r, const unsigned char draw_g,
               const unsigned char draw_b, const int evolve) {

    int idx = blockIdx.x * blockDim.x + threadIdx.x;
    int stride = blockDim.x * gridDim.x;
    int alive_channel = channels == 4 ? 3 : 0;
    unsigned int frame = __float_as_uint(frame_value);

    for (int i = idx; i < width * height; i += stride) {
        int x = i % width;
        int y = i / width;
        int cell_idx = i * channels;
        bool alive = current[cell_idx + alive_channel] > threshold;

        if (evolve) {
            // Count live neighbours, remembering them in scan order
            int count = 0;
            int parents[8];
            for (int dy = -1; dy <= 1; dy++) {
                for (int dx = -1; dx <= 1; dx++) {
                    if (dx == 0 && dy == 0) continue;
                    int n_idx;
                    if (!fetch_cell(current, x + dx, y + dy, width, height,
                                    channels, edge_policy, &n_idx)) continue;
                    if (current[n_idx + alive_channel] > threshold) {
                        parents[count] = n_idx;
                        count++;
                    }
                }
            }

            bool next_alive = (count == 3) || (count == 2 && alive);
            for (int c = 0; c < channels; c++) next[cell_idx + c] = 0;
            if (next_alive) {
                if (channels == 1) {
                    next[cell_idx] = 255;
                } else {
                    int source = cell_idx;
                    if (!alive) source = parents[cell_hash(x, y, frame) % 3u];
                    next[cell_idx] = current[source];
                    next[cell_idx + 1] = current[source + 1];
                    next[cell_idx + 2] = current[source + 2];
                    next[cell_idx + 3] = 255;
                }
            }
        } else {
            for (int c = 0; c < channels; c++) next[cell_idx + c] = current[cell_idx + c];
        }

        // Brush overrides the rule
        float px = x + 0.5f - cursor_x;
        float py = y + 0.5f - cursor_y;
        if (px * px + py * py < draw_radius * draw_radius) {
            if (channels == 1) {
                next[cell_idx] = 255;
            } else {
                next[cell_idx] = draw_r;
                next[cell_idx + 1] = draw_g;
                next[cell_idx + 2] = draw_b;
                next[cell_idx + 3] = 255;
            }
        }
    }
}
'''

# Colour pass used for image export
FIELD_TO_RGBA_KERNEL = r'''
extern "C" __global__
void field_to_rgba(const unsigned char* field, unsigned char* rgba,
                   const int size, const int channels,
                   const float dead_r, const float dead_g, const float dead_b,
                   const float live_r, const float live_g, const float live_b,
                   const float tint_r, const float tint_g, const float tint_b,
                   const float tint_strength) {
    int idx = blockIdx.x * blockDim.x + threadIdx.x;
    int stride = blockDim.x * gridDim.x;

    for (int i = idx; i < size; i += stride) {
        int cell_idx = i * channels;
        int rgba_idx = i * 4;
        float level, r, g, b;

        if (channels == 1) {
            level = field[cell_idx] / 255.0f;
            r = live_r; g = live_g; b = live_b;
        } else {
            level = field[cell_idx + 3] / 255.0f;
            r = field[cell_idx] / 255.0f;
            g = field[cell_idx + 1] / 255.0f;
            b = field[cell_idx + 2] / 255.0f;
            r += (tint_r - r) * tint_strength;
            g += (tint_g - g) * tint_strength;
            b += (tint_b - b) * tint_strength;
        }

        rgba[rgba_idx + 0] = (unsigned char)rintf(fminf(fmaxf(dead_r + (r - dead_r) * level, 0.0f), 1.0f) * 255.0f);
        rgba[rgba_idx + 1] = (unsigned char)rintf(fminf(fmaxf(dead_g + (g - dead_g) * level, 0.0f), 1.0f) * 255.0f);
        rgba[rgba_idx + 2] = (unsigned char)rintf(fminf(fmaxf(dead_b + (b - dead_b) * level, 0.0f), 1.0f) * 255.0f);
        rgba[rgba_idx + 3] = 255;
    }
}
'''


def compile_kernels():
    """Compile all CUDA kernels and return them.

    RawModule compiles when the first function is looked up, so compile
    errors surface here rather than on the first launch.
    """
    module = cp.RawModule(code=LIFE_STEP_KERNEL + FIELD_TO_RGBA_KERNEL)
    return {name: module.get_function(name) for name in KERNEL_NAMES}
