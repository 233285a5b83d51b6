import setuptools
import os
import os.path


# Get the readme file
if os.path.isfile("README.md"):
    with open("README.md", "r") as fh:
        long_description = fh.read()
else:
    long_description = ""

setuptools.setup(
    name="ed_fermi",
    version="0.1.0",
    description="Exact Diagonalization of fermionic lattice models at finite temperature",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    package_dir={
        "ed_fermi": "ed_fermi",
        "ed_fermi.modeling": "ed_fermi/modeling",
        "ed_fermi.operators": "ed_fermi/operators",
        "ed_fermi.symmetries": "ed_fermi/symmetries",
        "ed_fermi.tools": "ed_fermi/tools",
        "ed_fermi.workflows": "ed_fermi/workflows",
    },
    packages=[
        "ed_fermi",
        "ed_fermi.modeling",
        "ed_fermi.operators",
        "ed_fermi.symmetries",
        "ed_fermi.tools",
        "ed_fermi.workflows",
    ],
    python_requires=">=3.8",
    install_requires=["numpy", "scipy", "numba"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["ed_fermi_thermal = ed_fermi.workflows.thermal:main"],
    },
)
