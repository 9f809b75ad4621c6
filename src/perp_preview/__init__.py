"""Off-chain preview engine for perpetual-futures market economics."""
