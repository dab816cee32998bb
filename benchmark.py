# Entry point kept for running from a checkout without installing
# Equivalent to the cloudrun-perf console script

from cloudrun_perf.cli import main


if __name__ == "__main__":
    main()
