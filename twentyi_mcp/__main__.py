from twentyi_mcp.server import main

main()
