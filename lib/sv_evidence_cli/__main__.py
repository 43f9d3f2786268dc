"""Allow `python -m sv_evidence_cli`."""

from sv_evidence_cli import main

if __name__ == "__main__":
    main()
