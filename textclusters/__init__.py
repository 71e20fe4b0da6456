"""textclusters - Document clustering with TF-IDF/MDS and vector/t-SNE layouts."""

# Set environment variables BEFORE any scientific library imports
# to keep BLAS/OpenMP single-threaded.
import os as _os
_os.environ.setdefault("OMP_NUM_THREADS", "1")
_os.environ.setdefault("MKL_NUM_THREADS", "1")
_os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
del _os

__version__ = "0.1.0"

# Main modules are importable directly from the package
__all__ = []
