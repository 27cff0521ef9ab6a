"""
The WGSL source of the compute kernel that advances the grid by one generation.
"""

__all__ = ["WORKGROUP_SIZE", "ENTRY_POINT", "generation_step_wgsl"]


# Cells per workgroup along each axis. Used by the shader and the dispatch.
WORKGROUP_SIZE = 8

ENTRY_POINT = "generation_step"


generation_step_wgsl = """
struct Params {
    grid_size: u32,
    neighborhood_size: u32,

    lower_stable1: u32, upper_stable1: u32, lower_born1: u32, upper_born1: u32, enabled1: u32,
    lower_stable2: u32, upper_stable2: u32, lower_born2: u32, upper_born2: u32, enabled2: u32,
    lower_stable3: u32, upper_stable3: u32, lower_born3: u32, upper_born3: u32, enabled3: u32,
    lower_stable4: u32, upper_stable4: u32, lower_born4: u32, upper_born4: u32, enabled4: u32,
};

@group(0) @binding(0) var<storage, read> grid_in: array<u32>;
@group(0) @binding(1) var<storage, read_write> grid_out: array<u32>;
@group(0) @binding(2) var<storage, read> mask1: array<u32>;
@group(0) @binding(3) var<storage, read> mask2: array<u32>;
@group(0) @binding(4) var<storage, read> mask3: array<u32>;
@group(0) @binding(5) var<storage, read> mask4: array<u32>;
@group(0) @binding(6) var<uniform> params: Params;

fn in_range(count: u32, lower: u32, upper: u32) -> bool {
    return count >= lower && count <= upper;
}

fn decide(alive: bool, count: u32, ls: u32, us: u32, lb: u32, ub: u32) -> bool {
    if (alive) {
        return in_range(count, ls, us);
    }
    return in_range(count, lb, ub);
}

@compute @workgroup_size(WORKGROUP_SIZE, WORKGROUP_SIZE, 1)
fn generation_step(@builtin(global_invocation_id) gid: vec3<u32>) {
    let n = params.grid_size;
    if (gid.x >= n || gid.y >= n) {
        return;
    }

    let index = gid.y * n + gid.x;
    let state = grid_in[index];

    let e1 = params.enabled1 == 1u;
    let e2 = params.enabled2 == 1u;
    let e3 = params.enabled3 == 1u;
    let e4 = params.enabled4 == 1u;

    // Identity when no rule set is enabled
    if (!(e1 || e2 || e3 || e4)) {
        grid_out[index] = state;
        return;
    }

    let k = params.neighborhood_size;
    let radius = i32(k / 2u);
    let size = i32(n);

    var count1: u32 = 0u;
    var count2: u32 = 0u;
    var count3: u32 = 0u;
    var count4: u32 = 0u;

    for (var dy: i32 = -radius; dy <= radius; dy = dy + 1) {
        for (var dx: i32 = -radius; dx <= radius; dx = dx + 1) {
            if (dx == 0 && dy == 0) { continue; }

            let ny = (i32(gid.y) + dy + size) % size;
            let nx = (i32(gid.x) + dx + size) % size;
            if (grid_in[u32(ny) * n + u32(nx)] != 1u) { continue; }

            let m = u32(dy + radius) * k + u32(dx + radius);
            if (e1 && mask1[m] == 1u) { count1 = count1 + 1u; }
            if (e2 && mask2[m] == 1u) { count2 = count2 + 1u; }
            if (e3 && mask3[m] == 1u) { count3 = count3 + 1u; }
            if (e4 && mask4[m] == 1u) { count4 = count4 + 1u; }
        }
    }

    // Rule sets are additive: the next state is the OR over enabled rule sets
    let alive = state == 1u;
    var next_alive = false;
    if (e1) { next_alive = next_alive || decide(alive, count1, params.lower_stable1, params.upper_stable1, params.lower_born1, params.upper_born1); }
    if (e2) { next_alive = next_alive || decide(alive, count2, params.lower_stable2, params.upper_stable2, params.lower_born2, params.upper_born2); }
    if (e3) { next_alive = next_alive || decide(alive, count3, params.lower_stable3, params.upper_stable3, params.lower_born3, params.upper_born3); }
    if (e4) { next_alive = next_alive || decide(alive, count4, params.lower_stable4, params.upper_stable4, params.lower_born4, params.upper_born4); }

    grid_out[index] = select(0u, 1u, next_alive);
}
""".replace("WORKGROUP_SIZE", str(WORKGROUP_SIZE))
