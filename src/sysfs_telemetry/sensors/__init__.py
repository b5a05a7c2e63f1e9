"""Inspectors for the cpufreq, procfs and thermal kernel interfaces."""
