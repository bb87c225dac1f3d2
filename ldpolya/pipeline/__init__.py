"""High level code for driving the PolyA RNA-seq mapping pipeline.

This structures processing steps into the following modules:

  - main.py: Check tools and reference data, discover samples and run
             per-sample chains with a bounded number of job slots.
    - sample.py: Map, sort and index a single sample, skipping stages
                 whose outputs are up to date.
  - config_utils.py: Build the run configuration and locate programs.
"""
