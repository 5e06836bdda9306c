from geomeps.geometry.boxtree import GeometryIndex
