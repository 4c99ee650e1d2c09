"""
Quick test script for cytotime - minimal example to verify installation.
"""

import numpy as np
import pandas as pd
import scanpy as sc
import anndata as ad

import cytotime as ct

# Create minimal test data
np.random.seed(42)
n_cells = 600
markers = ['CD34', 'CD38', 'CD45RA', 'CD90', 'CD10', 'CD19']

# Cells progress along t in [0, 1]: CD34 fades, CD19 rises
t = np.sort(np.random.uniform(0, 1, n_cells))
X = np.column_stack([
    3 * (1 - t),
    2 * np.sin(np.pi * t),
    np.random.normal(1, 0.2, n_cells),
    1.5 * (1 - t) ** 2,
    2 * t * (1 - t),
    3 * t,
]) + np.random.normal(0, 0.05, (n_cells, len(markers)))

adata = ad.AnnData(X=X.astype(np.float32))
adata.var_names = markers
adata.obs_names = [f'cell_{i:04d}' for i in range(n_cells)]
adata.obs['cluster_id'] = 1 + (t * 6).astype(int).clip(max=5)
adata.obs['downsample'] = np.random.uniform(size=n_cells) < 0.8

print(f"Created data: {adata.n_obs} cells x {adata.n_vars} markers")

# Upstream embedding, computed on the downsampled cells
ds = adata[adata.obs['downsample'].values].copy()
sc.tl.pca(ds, n_comps=3)
pca = pd.DataFrame(ds.obsm['X_pca'], index=ds.obs_names, columns=['PC_1', 'PC_2', 'PC_3'])

pop = ct.CellPopulation(adata).with_embedding('pca', pca)

# Root at the earliest cluster, then pseudotime in PCA space
pop = ct.define_root_cells(pop, root_cells=1, verbose=True).population
result = ct.estimate_pseudotime(pop, dim_type='pca', dim_use=(1, 2), n_neighbors=10, verbose=True)
pop = result.population
print(f"Fallbacks applied: {result.fallbacks}")

pst = pop.pseudotime[pop.downsample_mask]
print(f"Pseudotime range: {pst.min():.2f} - {pst.max():.2f}, missing: {pst.isna().sum()}")
print(f"Correlation with true time: {np.corrcoef(pst.fillna(0), t[pop.downsample_mask])[0, 1]:.3f}")

# Late cells of the last cluster become leaves
pop = ct.define_leaf_cells(pop, leaf_cells=6, pseudotime_cutoff=0.8, verbose=True).population
print(pop.to_frame()[['cell', 'cluster_id', 'pseudotime', 'is_root_cells', 'is_leaf_cells']].head())

print("\n✅ cytotime is working correctly!")
