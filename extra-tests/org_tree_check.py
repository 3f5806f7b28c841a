#!/usr/bin/env python3

import os
import sys

import org_tree

top = sys.argv[1]
count = 0

for root, dirs, files in os.walk(top):
    for name in files:
        if not name.endswith(".org"):
            continue

        path = os.path.join(root, name)
        count += 1
        with open(path) as f:
            text = f.read()
        try:
            doc = org_tree.loads(text)
        except org_tree.OrgParseError:
            import traceback

            traceback.print_exc()
            print(f"== On {path}")
            sys.exit(1)

        # Every node must point inside the file
        for node in org_tree.walk(doc):
            if not doc.shared.span.contains(node.shared.span):
                print(f"== Span {node.shared.span} out of the document on {path}")
                sys.exit(1)

print("[OK] Check passed on {} files".format(count))
