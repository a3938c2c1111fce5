"""Example pipeline: generate an apartment bubble diagram and check adjacencies."""

from bubblegraph import Diagram

SPACES = """
Living Room, 28
Kitchen, 14
Dining, 16
Bedroom 1, 14
Bedroom 2, 12
Bathroom, 6
Entry, 5
Laundry, 4
"""

EXPECTED = """
Entry - Living Room
Kitchen - Dining
Dining - Living Room
Bedroom 1 - Bathroom
Kitchen - Laundry
"""


def main() -> None:
    diagram = Diagram(seed=123)
    diagram.generate_from_list(SPACES)

    report = diagram.compute_conflicts(EXPECTED)
    print(f"Missing before auto-connect: {len(report.missing_pairs)}")
    diagram.auto_connect(report)
    diagram.upsert_link(diagram.find_by_name("Bedroom 1").id, diagram.find_by_name("Bedroom 2").id, "ideal")

    diagram.trigger_detangle()
    ticks = diagram.run_until_settled(3000)
    print(f"Settled after {ticks} ticks")

    for node in diagram.nodes:
        print(f"  {node.name}: ({node.x:.1f}, {node.y:.1f}) r={diagram.radius(node.id):.1f}")

    report = diagram.compute_conflicts(EXPECTED)
    print(f"Overlapping pairs: {len(diagram.overlaps())}")
    print(f"Overlong links: {report.overlong_link_ids}")
    diagram.close()


if __name__ == "__main__":
    main()
